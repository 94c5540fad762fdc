"""Threat analysis — AI assessment of alerts.

Modules
───────
  client       — prompt builder + call to the text-generation service
  orchestrator — per-alert state machine: in-flight gate, auto scan, manual re-run
"""

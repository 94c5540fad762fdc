"""Sentinel console — runs the simulated SOC loop from the command line.

Modules
───────
  runtime  — wire store, emulator and orchestrator; tick loop
  reporter — write alert snapshots (CSV, JSONL) and a text report
  cli      — argparse entry-point
"""

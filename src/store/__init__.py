"""In-memory alert store.

Modules
───────
  alert_store — ordered collection + resolve/snooze/update/visibility
  events      — AlertsChanged message delivered to subscribers
  errors      — typed exceptions for store misuse
"""

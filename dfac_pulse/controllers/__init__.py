"""
Controllers for DFAC Pulse.

- Survey Form Controller: immutable form state and submission
- Dashboard Controller: admin gate, record loading and per-tab views
"""

"""
Utility modules for DFAC Pulse.

Cross-cutting concerns:
- Storage: StoreError, JSON file record store, backend selection
- Firebase: Realtime Database REST record store
"""

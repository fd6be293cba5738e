"""
Generic stores for entities, events and participations.

Private to ``app.services``: orchestrators call these inside their own
transaction. Routers and scripts go through the orchestrators.
"""

# Registers the per-type validators with the dispatcher.
from . import event_types  # noqa: F401

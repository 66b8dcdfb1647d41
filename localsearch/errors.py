class InvalidInstanceError(ValueError):
    """The problem instance cannot be scheduled at all (empty catalogs, an event without any compatible resource, broken references)."""


class ConfigurationError(ValueError):
    """The search configuration is inconsistent. Raised before any iteration runs."""


class StaleMoveError(RuntimeError):
    """A move does not match the schedule it is applied to. This is a bug in the move generator, not a runtime condition."""

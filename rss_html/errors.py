"""Exception types for RSS HTML Reader."""


class ProjectionError(ValueError):
    """Raised when a feed tree or sink breaks a projection precondition."""


class InvalidElementError(ProjectionError):
    """Raised when an element is missing, is a text node, or has the wrong tag."""


class SinkClosedError(ProjectionError):
    """Raised when the output sink is missing or already closed."""


class MissingChannelLinkError(ProjectionError):
    """Raised when a channel has no usable <link> element."""


class InvalidFeedError(ValueError):
    """Raised when a fetched document is not a usable RSS 2.0 feed."""

class MissingSampleError(LookupError):
    """
    Raised when a stencil neighbour or a required velocity sample is inactive.
    """
    def __init__(self, position, kind='scalar'):
        self.position = tuple(float(c) for c in position)
        self.kind = kind
        super().__init__('No %s value found at position %s.' % (kind, self.position))


class InvalidParameterError(ValueError):
    """
    Raised for physically meaningless simulation inputs (e.g. non-positive density).
    """
    pass

"""Error taxonomy shared by the resolver, inference contract and record store."""


class RoofApiError(Exception):
    """Base exception for roof_api."""
    pass


class InvalidRequest(RoofApiError):
    """Inference request violates the contract."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidResponse(RoofApiError):
    """Inference response violates the contract."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class DuplicateKey(RoofApiError):
    """A validated record with this OSM id already exists."""

    def __init__(self, osm_id: int):
        super().__init__(f"Building with osm_id {osm_id} already validated")
        self.osm_id = osm_id


class ConstraintViolation(RoofApiError):
    """A record field is malformed (bad hex color, over-length string, ...)."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class NotFound(RoofApiError):
    """Lookup miss."""
    pass


class NoEligibleModel(RoofApiError):
    """No catalog model satisfies the token and budget limits."""
    pass

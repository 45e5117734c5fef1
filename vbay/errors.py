class ListingNotFound(LookupError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(f"Listing '{listing_id}' not found")
        self.listing_id = listing_id


class NotListingOwner(PermissionError):
    def __init__(self, listing_id: str) -> None:
        super().__init__("You do not have permission to edit this item.")
        self.listing_id = listing_id


class LoginRequired(PermissionError):
    def __init__(self, message: str = "You must be logged in to do that.") -> None:
        super().__init__(message)


class AuthError(Exception):
    """Raised by an identity provider that rejects a ticket."""


class InvalidTransition(ValueError):
    pass


class StorageWriteError(OSError):
    pass

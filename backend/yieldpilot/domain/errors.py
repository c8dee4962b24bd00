# yieldpilot/domain/errors.py
from __future__ import annotations


class ListingNotFound(LookupError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id


class ListingMetricsNotFound(ListingNotFound):
    def __init__(self, listing_id: str) -> None:
        LookupError.__init__(self, f"No metrics found for listing {listing_id}")
        self.listing_id = listing_id

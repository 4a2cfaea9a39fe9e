"""
Artwork domain model
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, UTC
from typing import NewType, Any, Self

ArtworkId = NewType("ArtworkId", int)


@dataclass(slots=True)
class ArtistInfo:
    """
    Artist metadata sourced from the museum catalog
    """

    name: str
    biography: str | None = None
    nationality: str | None = None
    begin: str | None = None
    end: str | None = None
    gender: str | None = None
    wiki_url: str | None = None


@dataclass(slots=True)
class PurchaseRecord:
    """
    A completed sale of an artwork
    """

    buyer: str
    price: int
    timestamp: datetime
    # None when the auction house was the seller
    seller: str | None = None


@dataclass(slots=True)
class Artwork:
    """
    Artwork

    Invariants
    ----------
    - `is_being_auctioned` is True iff a live auction floor references the artwork
    - the artwork id is owned by at most one player at a time
    """

    # pylint: disable=too-many-instance-attributes

    id: ArtworkId
    title: str
    artist: ArtistInfo
    description: str = ""
    medium: str = ""
    department: str = ""
    primary_image: str = ""

    # current valuation, i.e., the last sale price
    purchase_price: int = 0
    is_being_auctioned: bool = False
    purchase_history: list[PurchaseRecord] = field(default_factory=list)

    culture: str | None = None
    period: str | None = None
    country_of_origin: str | None = None

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id < 0:
            raise ValueError(f"artwork id must be a non-negative integer: {self.id!r}")
        if not self.title:
            raise ValueError("artwork title is required")
        if not isinstance(self.artist, ArtistInfo):
            raise ValueError(f"artist must be ArtistInfo: {self.artist!r}")
        if self.purchase_price < 0:
            raise ValueError(f"purchase_price must not be negative: {self.purchase_price}")

    def record_sale(self, buyer: str, price: int, seller: str | None = None) -> PurchaseRecord:
        """
        Stamps the sale price as the artwork's valuation and appends the sale to the purchase history.
        """
        record = PurchaseRecord(
            buyer=buyer,
            price=price,
            timestamp=datetime.now(UTC),
            seller=seller,
        )
        self.add_purchase(record)
        return record

    def add_purchase(self, record: PurchaseRecord):
        self.purchase_price = record.price
        self.purchase_history.append(record)

    def to_dict(self) -> dict[str, Any]:
        """
        Converts the artwork into a JSON compatible dict
        """
        data = asdict(self)
        data["purchase_history"] = [
            {**record, "timestamp": record["timestamp"].isoformat()}
            for record in data["purchase_history"]
        ]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Inverse of `to_dict`
        """
        data = dict(data)
        data["artist"] = ArtistInfo(**data["artist"])
        data["purchase_history"] = [
            PurchaseRecord(
                **{**record, "timestamp": datetime.fromisoformat(record["timestamp"])}
            )
            for record in data.get("purchase_history", [])
        ]
        return cls(**data)

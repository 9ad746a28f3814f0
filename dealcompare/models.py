from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

class _CamelModel(BaseModel):
    """Base for models exchanged with the model and the client in camelCase."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

class BestDeal(_CamelModel):
    """The single most favorable offer picked by the model."""
    product_name: Optional[str] = Field(default=None, alias="productName")
    best_price: Optional[str] = Field(default=None, alias="bestPrice")
    best_vendor: Optional[str] = Field(default=None, alias="bestVendor")
    best_vendor_link: Optional[str] = Field(default=None, alias="bestVendorLink")

    @field_validator("best_price", mode="before")
    @classmethod
    def _price_as_text(cls, value: Any) -> Any:
        return _number_as_text(value)

class Deal(_CamelModel):
    """One vendor's offer for the searched product."""
    vendor: str
    price: Optional[str] = None
    rating: Optional[str] = None
    coupon: Optional[str] = None
    coupon_tag: Optional[str] = Field(default=None, alias="couponTag")
    logo_url: Optional[str] = Field(default=None, alias="logoUrl")
    vendor_url: Optional[str] = Field(default=None, alias="vendorUrl")
    button_style: Dict[str, Any] = Field(default_factory=dict, alias="buttonStyle")

    @field_validator("price", "rating", mode="before")
    @classmethod
    def _numbers_as_text(cls, value: Any) -> Any:
        return _number_as_text(value)

    @field_validator("button_style", mode="before")
    @classmethod
    def _null_style_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

class ComparisonResult(_CamelModel):
    """Price comparison across the allowed vendors.

    Only `vendor` is required on a deal; any field the model marks as unknown
    may be null. Keys outside the schema are kept and relayed to the client.
    """
    best_deal: Optional[BestDeal] = Field(default=None, alias="bestDeal")
    deals: List[Deal] = Field(default_factory=list)

    @field_validator("deals", mode="before")
    @classmethod
    def _null_deals_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_response(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys clients expect."""
        return self.model_dump(by_alias=True)

def _number_as_text(value: Any) -> Any:
    # bool is an int subclass but never a valid price or rating
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value

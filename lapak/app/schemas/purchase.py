from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------- Entrées ----------
class PurchaseItemCreate(BaseModel):
    product_id: str | int = Field(validation_alias=AliasChoices("productId", "productID", "product_id"))
    quantity: int = Field(validation_alias=AliasChoices("qty", "quantity"))


class PurchaseCreate(BaseModel):
    """
    Panier acheteur.

    Les règles métier (qty >= 2, contact, ids) sont vérifiées par
    lapak.services.purchases, pas ici: le schéma ne contrôle que les types.
    """

    sender_name: str = Field(validation_alias=AliasChoices("senderName", "sender_name"))
    sender_contact_type: str = Field(validation_alias=AliasChoices("senderContactType", "sender_contact_type"))
    sender_contact_detail: str = Field(
        validation_alias=AliasChoices("senderContactDetail", "sender_contact_detail")
    )
    items: list[PurchaseItemCreate] = Field(
        default_factory=list,
        validation_alias=AliasChoices("purchasedItems", "items"),
    )


class PaymentProofCreate(BaseModel):
    file_ids: list[str | int] = Field(validation_alias=AliasChoices("fileIds", "file_ids"))


# ---------- Sorties ----------
class _CamelOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PurchasedItemRead(_CamelOut):
    product_id: str = Field(alias="productId")
    name: str
    category: str
    qty: int
    price: int
    sku: str
    file_id: str = Field(alias="fileId")
    file_uri: str = Field(alias="fileUri")
    file_thumbnail_uri: str = Field(alias="fileThumbnailUri")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class SellerPaymentRead(_CamelOut):
    seller_id: str = Field(alias="sellerId")
    bank_account_name: str | None = Field(default=None, alias="bankAccountName")
    bank_account_holder: str | None = Field(default=None, alias="bankAccountHolder")
    bank_account_number: str | None = Field(default=None, alias="bankAccountNumber")
    total_price: int = Field(alias="totalPrice")


class PurchaseRead(_CamelOut):
    purchase_id: str = Field(alias="purchaseId")
    purchased_items: list[PurchasedItemRead] = Field(alias="purchasedItems")
    total_price: int = Field(alias="totalPrice")
    payment_details: list[SellerPaymentRead] = Field(alias="paymentDetails")

from typing import Any, Dict
from basket_api.schema.basket import BasketItem


def item_to_dict(item: BasketItem) -> Dict[str, Any]:
    return {
        "id": str(item.public_id),
        "userId": item.user_id,
        "email": item.email,
        "productId": item.product_id,
        "title": item.title,
        "image": item.image,
        "quantity": item.quantity,
        "source": item.source,
        "affiliateUrl": item.affiliate_url,
        "priceAtAdd": item.price_at_add,
        "currency": item.currency,
        "frequency": item.frequency,
        "nextDueAt": item.next_due_at.isoformat() if item.next_due_at else None,
        "status": item.status,
        "createdAt": item.created_at.isoformat() if item.created_at else None,
        "updatedAt": item.updated_at.isoformat() if item.updated_at else None,
    }

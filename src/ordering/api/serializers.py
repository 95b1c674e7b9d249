"""Render aggregates into the JSON shapes the API returns."""


def _iso(value):
    return value.isoformat() if value else None


def cart_to_dict(cart, user_id=None) -> dict:
    if cart is None:
        return {"user_id": str(user_id), "items": [], "total": 0.0, "expires_at": None}
    return {
        "id": str(cart.id),
        "user_id": str(cart.user_id),
        "items": [
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "added_at": _iso(item.added_at),
            }
            for item in cart.items
        ],
        "total": cart.total,
        "expires_at": _iso(cart.expires_at),
        "updated_at": _iso(cart.updated_at),
    }


def order_to_dict(order) -> dict:
    address = order.shipping_address
    result = order.payment_result
    failure = order.payment_failure
    return {
        "id": str(order.id),
        "user_id": str(order.user_id),
        "items": [
            {
                "product_id": str(item.product_id),
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "image": item.image,
            }
            for item in order.items
        ],
        "shipping_address": {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "zip_code": address.zip_code,
            "country": address.country,
        }
        if address
        else None,
        "payment_method": order.payment_method,
        "items_price": order.items_price,
        "tax_price": order.tax_price,
        "shipping_price": order.shipping_price,
        "total_price": order.total_price,
        "is_paid": order.is_paid,
        "paid_at": _iso(order.paid_at),
        "payment_result": {
            "id": result.transaction_id,
            "status": result.status,
            "update_time": result.update_time,
            "email_address": result.payer_email,
        }
        if result
        else None,
        "payment_failure": {
            "id": failure.transaction_id,
            "reason": failure.reason,
            "failed_at": _iso(failure.failed_at),
        }
        if failure
        else None,
        "is_delivered": order.is_delivered,
        "delivered_at": _iso(order.delivered_at),
        "status": order.status,
        "created_at": _iso(order.created_at),
    }

from storefront.utils import isoformat, money


def product_payload(product):
    return {
        'id': product.id,
        'name': product.name,
        'description': product.description,
        'price': money(product.price),
        'category': product.category,
        'stock': product.stock,
        'image': product.image,
        'isActive': product.is_active,
        'createdAt': isoformat(product.created_at),
        'updatedAt': isoformat(product.updated_at),
    }


def cart_payload(lines):
    items = []
    for line in lines:
        items.append({
            'product': line.product,
            'quantity': line.quantity,
        })
    return {
        'items': items,
        'totalItems': sum(line.quantity for line in lines),
        'total': sum(
            (line.product.get('price') or 0) * line.quantity
            for line in lines),
    }


def user_payload(user):
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role.value.lower(),
        'address': user.address,
        'phone': user.phone,
        'walletBalance': money(user.wallet_balance),
        'isActive': user.is_active,
        'createdAt': isoformat(user.created_at),
    }


def order_payload(order, include_user=False):
    items = []
    for item in order.items:
        product = item.product
        items.append({
            'product': {
                'id': item.product_id,
                'name': product.name if product else None,
                'price': money(product.price) if product else None,
                'image': product.image if product else None,
            },
            'quantity': item.quantity,
            # Price captured when the order was placed.
            'price': money(item.unit_price),
        })

    payload = {
        'id': order.id,
        'orderNumber': order.order_number,
        'user': order.user_id,
        'items': items,
        'subtotal': money(order.subtotal),
        'tax': money(order.tax),
        'shipping': money(order.shipping),
        'total': money(order.total),
        'status': order.status.value,
        'paymentMethod': order.payment_method.value,
        'paymentStatus': order.payment_status.value,
        'shippingAddress': {
            'name': order.shipping_name,
            'address': order.shipping_address,
            'city': order.shipping_city,
            'postalCode': order.shipping_postal_code,
            'phone': order.shipping_phone,
        },
        'trackingNumber': order.tracking_number,
        'notes': order.notes,
        'createdAt': isoformat(order.created_at),
        'updatedAt': isoformat(order.updated_at),
    }
    if include_user and order.user:
        payload['user'] = {
            'id': order.user.id,
            'name': order.user.name,
            'email': order.user.email,
        }
    return payload


def transaction_payload(transaction):
    return {
        'id': transaction.id,
        'type': transaction.type.value,
        'amount': money(transaction.amount),
        'description': transaction.description,
        'status': transaction.status.value,
        'createdAt': isoformat(transaction.created_at),
    }


def topup_payload(topup, include_user=False):
    payload = {
        'id': topup.id,
        'user': topup.user_id,
        'amount': money(topup.amount),
        'paymentMethod': topup.payment_method.value,
        'paymentProof': topup.payment_proof,
        'status': topup.status.value,
        'adminNotes': topup.admin_notes,
        'processedBy': topup.processed_by,
        'processedAt': isoformat(topup.processed_at),
        'createdAt': isoformat(topup.created_at),
        'updatedAt': isoformat(topup.updated_at),
    }
    if include_user:
        payload['user'] = {
            'id': topup.user.id,
            'name': topup.user.name,
            'email': topup.user.email,
        }
        if topup.processor:
            payload['processedBy'] = {
                'id': topup.processor.id,
                'name': topup.processor.name,
            }
    return payload


def pagination_payload(pagination):
    return {
        'page': pagination.page,
        'pages': pagination.pages,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'has_next': pagination.has_next,
        'has_prev': pagination.has_prev,
    }

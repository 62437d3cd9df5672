from decimal import Decimal

from storefront import create_app
from storefront.extensions import db
from storefront.models import Product, User, UserRole

app = create_app()

with app.app_context():
    # Create admin account (if not exists)
    admin_email = "admin"
    admin = User.query.filter_by(email=admin_email).first()
    if not admin:
        admin = User(
            name="Administrator", email=admin_email, role=UserRole.ADMIN
        )
        admin.set_password("admin123")
        db.session.add(admin)
        print(f"Created admin account: {admin_email} / admin123")
    else:
        print("Admin account already exists")

    products_data = [
        {
            "name": "Wireless Bluetooth Headphones",
            "description": (
                "High-quality wireless headphones with noise cancellation"
            ),
            "price": "99.99",
            "category": "Electronics",
            "stock": 50,
        },
        {
            "name": "Smartphone Case",
            "description": "Protective case for latest smartphones",
            "price": "19.99",
            "category": "Electronics",
            "stock": 200,
        },
        {
            "name": "Cotton T-Shirt",
            "description": "Soft everyday t-shirt, 100% cotton",
            "price": "15.00",
            "category": "Clothing",
            "stock": 120,
        },
        {
            "name": "Running Shoes",
            "description": "Lightweight running shoes with breathable mesh",
            "price": "79.50",
            "category": "Sports",
            "stock": 40,
        },
        {
            "name": "Python Cookbook",
            "description": "Recipes for mastering Python 3",
            "price": "45.00",
            "category": "Books",
            "stock": 30,
        },
        {
            "name": "Organic Green Tea",
            "description": "Loose-leaf green tea, 200g tin",
            "price": "12.75",
            "category": "Food",
            "stock": 130,
        },
    ]

    for product_data in products_data:
        existing = Product.query.filter_by(name=product_data["name"]).first()
        if existing:
            continue
        product = Product(
            name=product_data["name"],
            description=product_data["description"],
            price=Decimal(product_data["price"]),
            category=product_data["category"],
            stock=product_data["stock"],
            is_active=True,
        )
        db.session.add(product)
        print(f"  Created product: {product_data['name']}")

    db.session.commit()
    print("Data initialization completed!")

# catalog and order history shown while the backend cannot be reached

from typing import List

from db.models import Order, Product

_PRODUCTS = [
    {
        "id": 1,
        "name": "Cloud Processor X9",
        "price": "299.99",
        "category": "Hardware",
        "stockQuantity": 45,
        "description": "Distributed processing unit for cloud-native workloads.",
    },
    {
        "id": 2,
        "name": "Neural Link Hub",
        "price": "149.50",
        "category": "Networking",
        "stockQuantity": 12,
        "description": "Low-latency synchronisation hub for edge computing.",
    },
    {
        "id": 3,
        "name": "Cyber Shield v4",
        "price": "89.99",
        "category": "Security",
        "stockQuantity": 78,
        "description": "Encryption module with auto-scaling protection.",
    },
    {
        "id": 4,
        "name": "Data Core Prime",
        "price": "599.00",
        "category": "Storage",
        "stockQuantity": 5,
        "description": "Replicated storage array with automated failover.",
    },
    {
        "id": 5,
        "name": "Quantum Switch Q1",
        "price": "449.00",
        "category": "Networking",
        "stockQuantity": 22,
        "description": "Network switch for up to 10,000 concurrent connections.",
    },
    {
        "id": 6,
        "name": "Edge Compute Module",
        "price": "199.99",
        "category": "Hardware",
        "stockQuantity": 60,
        "description": "Compact unit running containerised workloads at the edge.",
    },
]

_ORDERS = [
    {
        "id": 1001,
        "customerName": "Demo User",
        "productId": 1,
        "productName": "Cloud Processor X9",
        "quantity": 2,
        "status": "COMPLETED",
        "totalPrice": "599.98",
        "createdAt": "2026-02-24T10:30:00Z",
    },
    {
        "id": 1002,
        "customerName": "Demo User",
        "productId": 3,
        "productName": "Cyber Shield v4",
        "quantity": 1,
        "status": "PROCESSING",
        "totalPrice": "89.99",
        "createdAt": "2026-02-25T08:15:00Z",
    },
    {
        "id": 1003,
        "customerName": "Demo User",
        "productId": 4,
        "productName": "Data Core Prime",
        "quantity": 1,
        "status": "SHIPPED",
        "totalPrice": "599.00",
        "createdAt": "2026-02-23T14:20:00Z",
    },
]


def demo_products() -> List[Product]:
    return [Product.from_json(p) for p in _PRODUCTS]


def demo_orders() -> List[Order]:
    return [Order.from_json(o) for o in _ORDERS]

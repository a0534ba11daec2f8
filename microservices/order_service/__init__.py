"""
Order Service

Storefront order microservice providing:
- Order completion (persist, ship, download links, confirmation)
- Order lookup and listing
- Digital download link verification

Port: 8210
"""

__version__ = "1.0.0"
__service__ = "order_service"

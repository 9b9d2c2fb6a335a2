# Routes package init
"""
VIP Travel API - Routes Package
================================

Route Inventory:
    - content.py:   /vipapi/contact-info, /vipapi/gallery, /vipapi/destination,
                    /vipapi/packages, /vipapi/carousel (one factory, five routers)
    - images.py:    GET /vipapi/images/{reference}
    - bookings.py:  /vipapi/bookings
    - health.py:    GET /health

Routes stay thin: parse the request, call a service, shape the response.
"""

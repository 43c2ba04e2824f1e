"""Sample store used in dev when no sheet API is configured."""

DEMO_STORE_ID = "demo"

DEMO_TABS = {
    "Services": [
        {"serviceName": "Haircut", "category": "Hair", "price": "35", "duration": "60 minutes", "description": "Classic cut and style"},
        {"serviceName": "Color", "category": "Hair", "price": "90", "duration": "120 minutes", "description": "Full color, beginner friendly consult"},
        {"serviceName": "Facial", "category": "Skin", "price": "70", "duration": "60 minutes", "description": "Relaxing deep-cleanse facial"},
    ],
    "Products": [
        {"name": "Shampoo", "category": "Hair", "price": "18", "description": "Sulfate-free shampoo"},
        {"name": "Conditioner", "category": "Hair", "price": "20", "description": "Hydrating conditioner"},
        {"name": "Moisturizer", "category": "Skin", "price": "42", "description": "Daily moisturizer"},
    ],
    "Hours": [
        {"day": "Monday", "openTime": "09:00", "closeTime": "17:00", "closed": True},
        {"day": "Tuesday", "openTime": "09:00", "closeTime": "17:00", "closed": False},
        {"day": "Wednesday", "openTime": "09:00", "closeTime": "17:00", "closed": False},
        {"day": "Thursday", "openTime": "09:00", "closeTime": "17:00", "closed": False},
        {"day": "Friday", "openTime": "09:00", "closeTime": "17:00", "closed": False},
        {"day": "Saturday", "openTime": "10:00", "closeTime": "15:00", "closed": False},
        {"day": "Sunday", "openTime": "", "closeTime": "", "closed": True},
    ],
    "Bookings": [],
    "Leads": [],
    "FAQ": [
        {"question": "Do you take walk-ins?", "answer": "Yes, when a stylist is free."},
        {"question": "What is your cancellation policy?", "answer": "Please cancel at least 24 hours ahead."},
    ],
}

DEMO_HEADERS = {
    "Bookings": ["service", "date", "time", "customerName", "email", "phone", "status", "createdAt", "confirmation"],
    "Leads": ["Date", "Name", "Email", "Phone", "Message", "Status"],
}

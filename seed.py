"""Sample listings around Perundurai, inserted once per title."""

import logging

from schemas import Property as PropertySchema

logger = logging.getLogger(__name__)

SAMPLE_PROPERTIES = [
    {
        "title": "Modern 2BHK Apartment",
        "description": "Beautiful modern apartment with all amenities near Perundurai bus stand",
        "price": 15000,
        "location": "Near Bus Stand, Perundurai",
        "coordinates": {"lat": 11.2750, "lng": 77.5800},
        "bedrooms": 2,
        "bathrooms": 2,
        "area": 1200,
        "amenities": ["WiFi", "AC", "Parking", "Security"],
        "images": ["https://via.placeholder.com/400x300?text=Modern+Apartment"],
        "owner": "Rajesh Kumar",
        "owner_phone": "9876543210",
    },
    {
        "title": "Spacious 3BHK House",
        "description": "Independent house with garden, perfect for families",
        "price": 25000,
        "location": "Textile Colony, Perundurai",
        "coordinates": {"lat": 11.2760, "lng": 77.5820},
        "bedrooms": 3,
        "bathrooms": 3,
        "area": 1800,
        "amenities": ["Garden", "Parking", "WiFi", "Security", "Power Backup"],
        "images": ["https://via.placeholder.com/400x300?text=Spacious+House"],
        "owner": "Priya Devi",
        "owner_phone": "9876543211",
    },
    {
        "title": "Budget 1BHK Flat",
        "description": "Affordable flat for students and working professionals",
        "price": 8000,
        "location": "College Road, Perundurai",
        "coordinates": {"lat": 11.2740, "lng": 77.5790},
        "bedrooms": 1,
        "bathrooms": 1,
        "area": 600,
        "amenities": ["WiFi", "Security"],
        "images": ["https://via.placeholder.com/400x300?text=Budget+Flat"],
        "owner": "Murugan",
        "owner_phone": "9876543212",
    },
    {
        "title": "Luxury Villa with Pool",
        "description": "Premium villa with swimming pool and modern facilities",
        "price": 50000,
        "location": "Hill View Area, Perundurai",
        "coordinates": {"lat": 11.2780, "lng": 77.5850},
        "bedrooms": 4,
        "bathrooms": 4,
        "area": 3000,
        "amenities": ["Swimming Pool", "Garden", "AC", "WiFi", "Security", "Gym"],
        "images": ["https://via.placeholder.com/400x300?text=Luxury+Villa"],
        "owner": "Arun Prakash",
        "owner_phone": "9876543213",
    },
    {
        "title": "Compact Studio Suite",
        "description": "Fully furnished studio perfect for single professionals close to the bus stand.",
        "price": 6500,
        "location": "Bus Stand Road, Perundurai",
        "coordinates": {"lat": 11.2748, "lng": 77.5815},
        "bedrooms": 1,
        "bathrooms": 1,
        "area": 420,
        "amenities": ["WiFi", "Furnished", "Security"],
        "images": ["https://via.placeholder.com/400x300?text=Studio+Suite"],
        "owner": "Deepa Ramesh",
        "owner_phone": "9876543214",
    },
    {
        "title": "Duplex Townhouse",
        "description": "Airy 3BHK duplex with private terrace and covered parking near textile colony.",
        "price": 28000,
        "location": "Textile Colony Extension, Perundurai",
        "coordinates": {"lat": 11.2765, "lng": 77.5835},
        "bedrooms": 3,
        "bathrooms": 3,
        "area": 1900,
        "amenities": ["Terrace", "Parking", "Power Backup", "Security"],
        "images": ["https://via.placeholder.com/400x300?text=Duplex+Townhouse"],
        "owner": "Sanjay Balan",
        "owner_phone": "9876543215",
    },
    {
        "title": "Eco Farmstay Cottage",
        "description": "Rustic 2BHK cottage nestled inside a 1-acre organic farm with weekend activities.",
        "price": 18000,
        "location": "Thindal Road, Perundurai",
        "coordinates": {"lat": 11.2725, "lng": 77.5895},
        "bedrooms": 2,
        "bathrooms": 2,
        "area": 1350,
        "amenities": ["Garden", "Pet Friendly", "Solar Power", "Parking"],
        "images": ["https://via.placeholder.com/400x300?text=Farmstay+Cottage"],
        "owner": "Kalai Selvi",
        "owner_phone": "9876543216",
    },
    {
        "title": "Corporate Service Apartment",
        "description": "Premium 2BHK service apartment with housekeeping and conference lounge for corporate stays.",
        "price": 32000,
        "location": "SEZ Link Road, Perundurai",
        "coordinates": {"lat": 11.2795, "lng": 77.5872},
        "bedrooms": 2,
        "bathrooms": 2,
        "area": 1500,
        "amenities": ["Housekeeping", "WiFi", "AC", "Conference Room", "Gym"],
        "images": ["https://via.placeholder.com/400x300?text=Service+Apartment"],
        "owner": "Lakshmi Narayan",
        "owner_phone": "9876543217",
    },
]


def ensure_sample_data(db) -> int:
    for data in SAMPLE_PROPERTIES:
        doc = PropertySchema(**data).model_dump()
        db["property"].update_one({"title": data["title"]}, {"$setOnInsert": doc}, upsert=True)
    logger.info("Sample data ensured (%d properties)", len(SAMPLE_PROPERTIES))
    return len(SAMPLE_PROPERTIES)


if __name__ == "__main__":
    from database import ensure_indexes, get_db

    logging.basicConfig(level=logging.INFO)
    database = get_db()
    ensure_indexes(database)
    ensure_sample_data(database)

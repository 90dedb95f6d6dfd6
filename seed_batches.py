# seed_batches.py
"""Log in as a producer and create the three sample batches through the API."""
import asyncio
import os

import httpx

API_URL = os.getenv("AWARE_API_URL", "http://localhost:3000")
USERNAME = os.getenv("SEED_USERNAME", "producer1")
PASSWORD = os.getenv("SEED_PASSWORD", "test123")

SAMPLE_BATCHES = [
    {
        "physicalAsset": {
            "assetId": "COTTON-2024-001",
            "material": "Organic Cotton",
            "composition": "100% Organic Cotton Fibers, Color: Natural",
            "weight": "500",
            "color": "#F5F5DC",
            "batchNumber": "OC-2024-001",
            "productionDate": "2024-01-15",
            "expiryDate": "2026-01-15",
        },
        "tracer": {
            "supplier": "Green Fields Organic Farm",
            "farmLocation": "Punjab Region",
            "country": "India",
            "gpsCoordinates": "30.7333° N, 76.7794° E",
            "certifications": "GOTS Certified, Fair Trade",
            "harvestDate": "2024-01-10",
        },
        "validation": {
            "qualityGrade": "Premium A",
            "moistureContent": "7.5%",
            "contamination": "None Detected",
            "inspectionDate": "2024-01-12",
            "inspector": "Dr. Priya Sharma",
            "labResults": "Pesticide-free, Heavy metals within limits",
        },
        "compliance": {
            "regulatoryStandards": "EU Organic Regulation 2018/848",
            "sustainabilityCert": "GOTS, Organic Content Standard",
            "fairTradeCert": "Fair Trade USA Certified",
            "organicCert": "USDA Organic, EU Organic",
            "carbonFootprint": "2.1 kg CO2e per kg",
            "waterUsage": "1800 liters per kg",
        },
    },
    {
        "physicalAsset": {
            "assetId": "WOOL-2024-002",
            "material": "Merino Wool",
            "composition": "100% Fine Merino Wool, Color: White",
            "weight": "300",
            "color": "#FFFFFF",
            "batchNumber": "MW-2024-002",
            "productionDate": "2024-02-20",
            "expiryDate": "2029-02-20",
        },
        "tracer": {
            "supplier": "Mountain Meadows Ranch",
            "farmLocation": "Southern Alps",
            "country": "New Zealand",
            "gpsCoordinates": "44.0000° S, 170.0000° E",
            "certifications": "ZQ Merino Standard, RWS Certified",
            "harvestDate": "2024-02-15",
        },
        "validation": {
            "qualityGrade": "Superfine 17.5 micron",
            "moistureContent": "12%",
            "contamination": "Clean, No vegetable matter",
            "inspectionDate": "2024-02-18",
            "inspector": "John McKenzie",
            "labResults": "Fiber diameter 17.5μm, Strength 35 N/ktex",
        },
        "compliance": {
            "regulatoryStandards": "Responsible Wool Standard (RWS)",
            "sustainabilityCert": "ZQ Merino, Responsible Wool Standard",
            "fairTradeCert": "Not Applicable",
            "organicCert": "Not Applicable",
            "carbonFootprint": "15.2 kg CO2e per kg",
            "waterUsage": "125 liters per kg",
        },
    },
    {
        "physicalAsset": {
            "assetId": "SILK-2024-003",
            "material": "Organic Silk",
            "composition": "100% Organic Silk, Color: Light Blue",
            "weight": "250",
            "color": "#ADD8E6",
            "batchNumber": "OS-2024-003",
            "productionDate": "2024-03-10",
            "expiryDate": "2027-03-10",
        },
        "tracer": {
            "supplier": "Sustainable Silk Co.",
            "farmLocation": "Suzhou Region",
            "country": "China",
            "gpsCoordinates": "31.2989° N, 120.5853° E",
            "certifications": "GOTS Certified, Organic",
            "harvestDate": "2024-03-05",
        },
        "validation": {
            "qualityGrade": "Premium Grade A",
            "moistureContent": "11%",
            "contamination": "None",
            "inspectionDate": "2024-03-08",
            "inspector": "Li Wei",
            "labResults": "Excellent quality, no defects",
        },
        "compliance": {
            "regulatoryStandards": "GOTS, Organic Content Standard",
            "sustainabilityCert": "GOTS Certified",
            "fairTradeCert": "Fair Trade Certified",
            "organicCert": "Organic",
            "carbonFootprint": "3.5 kg CO2e per kg",
            "waterUsage": "2500 liters per kg",
        },
    },
]


async def seed_batches():
    async with httpx.AsyncClient(base_url=API_URL, timeout=120.0) as client:
        resp = await client.post("/api/auth/login", json={"username": USERNAME, "password": PASSWORD})
        if resp.status_code != 200:
            print(f"❌ Login failed: {resp.json().get('error', resp.text)}")
            return
        token = resp.json()["access_token"]
        print(f"✅ Logged in as {USERNAME}")

        headers = {"Authorization": f"Bearer {token}"}
        for batch in SAMPLE_BATCHES:
            asset_id = batch["physicalAsset"]["assetId"]
            resp = await client.post("/api/batches/create", json=batch, headers=headers)
            if resp.status_code != 200:
                print(f"❌ {asset_id}: {resp.json().get('error', resp.text)}")
                continue
            print(f"📦 {asset_id} created with batch id {resp.json()['batchId']}")

    print(f"\n✨ Done. View them at {API_URL}/api/batches")


if __name__ == "__main__":
    asyncio.run(seed_batches())

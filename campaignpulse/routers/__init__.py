"""
CampaignPulse API Routers

Each module in this package defines a FastAPI APIRouter for one area of
the application (products, campaigns, OPEX, scenarios, settings, export).
Routers are included in the main FastAPI app in main.py.
"""

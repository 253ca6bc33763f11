"""
CampaignPulse Backend Package

FastAPI-based backend for seasonal sales campaign planning.
Provides REST API endpoints for the product catalog, campaigns and their
inputs, OPEX items, scenarios, forecasts and Excel exports.
"""

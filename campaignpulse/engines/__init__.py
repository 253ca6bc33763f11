"""
CampaignPulse Forecast Engines

Month ranges and distribution weights, product unit economics, the campaign
and scenario forecast builders, OPEX expansion and campaign profitability.
These modules are pure: routers (via runs.py) load the records, hand plain
dicts to them and serialise what comes back. runs.py is the only module here
that reads from the database.
"""

"""
Prompts for the AI trip generator (Gemini)
"""

import json

from src.models.request_models import TripRequest

def build_trip_prompt(request: TripRequest) -> str:
    """Build the itinerary generation prompt for a validated trip request.

    Pure and deterministic: the same request always yields the same prompt.
    """
    interests_text = ", ".join(request.interests)
    interests_json = json.dumps(request.interests, ensure_ascii=False)

    return f"""Generate a {request.number_of_days}-day travel itinerary for {request.country} based on the following user information:
        Budget: '{request.budget}'
        Interests: '{interests_text}'
        TravelStyle: '{request.travel_style}'
        GroupType: '{request.group_type}'
        Return the itinerary and lowest estimated price in a clean, non-markdown JSON format with the following structure:
        {{
        "name": "A descriptive title for the trip",
        "description": "A brief description of the trip and its highlights not exceeding 100 words",
        "estimatedPrice": "Lowest average price for the trip in USD, e.g.$price",
        "duration": {request.number_of_days},
        "budget": "{request.budget}",
        "travelStyle": "{request.travel_style}",
        "country": "{request.country}",
        "interests": {interests_json},
        "groupType": "{request.group_type}",
        "bestTimeToVisit": [
          '🌸 Season (from month to month): reason to visit',
          '☀️ Season (from month to month): reason to visit',
          '🍁 Season (from month to month): reason to visit',
          '❄️ Season (from month to month): reason to visit'
        ],
        "weatherInfo": [
          '☀️ Season: temperature range in Celsius (temperature range in Fahrenheit)',
          '🌦️ Season: temperature range in Celsius (temperature range in Fahrenheit)',
          '🌧️ Season: temperature range in Celsius (temperature range in Fahrenheit)',
          '❄️ Season: temperature range in Celsius (temperature range in Fahrenheit)'
        ],
        "location": {{
          "city": "name of the city or region",
          "coordinates": [latitude, longitude],
          "openStreetMap": "link to open street map"
        }},
        "itinerary": [
        {{
          "day": 1,
          "location": "City/Region Name",
          "activities": [
            {{"time": "Morning", "description": "🏰 Visit the local historic castle and enjoy a scenic walk"}},
            {{"time": "Afternoon", "description": "🖼️ Explore a famous art museum with a guided tour"}},
            {{"time": "Evening", "description": "🍷 Dine at a rooftop restaurant with local wine"}}
          ]
        }},
        ...
        ]
        }}
        The "itinerary" array must contain exactly {request.number_of_days} day entries, numbered from 1."""

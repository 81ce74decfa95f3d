#file: backend/insights.py

import asyncio
import json
import logging
import re
import ssl
from typing import Any, Dict, List, Optional

import aiohttp
import certifi
from pydantic import ValidationError as ModelValidationError

from backend import config
from backend.classifier import classify
from backend.errors import InsightError
from backend.models import ChatMessage, Insight, Pollutant, POLLUTANTS, Reading
from backend.utils import get_current_time

SYSTEM_PROMPT = """You are an AI assistant for an environmental mapping platform that helps users understand air quality data across Nigerian cities.

You have access to air quality data from monitoring stations in different states. The data includes measurements for:
- PM2.5 (Particulate Matter 2.5 micrometers, µg/m³)
- PM10 (Particulate Matter 10 micrometers, µg/m³)
- CO2 (Carbon Dioxide in ppm)
- CO (Carbon Monoxide in ppm)
- HCHO (Formaldehyde in mg/m³)
- Temperature and Humidity

When users ask about air quality:
1. Provide clear, concise explanations about the data
2. Explain what the measurements mean for health and environment
3. Compare values to standard air quality guidelines when relevant
4. Suggest visualizations or reports when appropriate

Be helpful, informative, and focus on making air quality data accessible and understandable."""


def build_snapshot(reading: Reading) -> Dict[str, Any] :
    """Summarize a reading into the shape the insight prompt expects."""
    classification = classify(reading.value(Pollutant.PM25))
    return {
        "aqi" : classification.band,
        "aqi_description" : classification.label,
        "components" : {pollutant.value : reading.value(pollutant) for pollutant in Pollutant},
        "location" : reading.location,
        "region" : reading.region,
        "coordinates" : {"lat" : reading.latitude, "lon" : reading.longitude},
        "timestamp" : reading.upload_time or get_current_time()
    }


def build_prompt(snapshot: Dict[str, Any], pollutant: Pollutant = Pollutant.PM25) -> str :
    pollutant = Pollutant(pollutant)
    coordinates = snapshot.get("coordinates") or {}
    return f"""
Based on the following air quality data for {snapshot["location"]}, provide comprehensive analysis and actionable recommendations for {POLLUTANTS[pollutant].label} levels.

AQI band: {snapshot["aqi"]} of 5 ({snapshot["aqi_description"]})
Components: {json.dumps(snapshot["components"], indent = 2)}
Location: {snapshot["location"]}, {snapshot.get("region", "")}
Coordinates: {coordinates.get("lat")}, {coordinates.get("lon")}
Timestamp: {snapshot["timestamp"]}

Please structure your response as a JSON array of objects, each with: title, description, severity (low|medium|high), timestamp (ISO), and recommendations (array of strings).

The first object should be the main summary with detailed analysis, others can be specific insights about health impacts, trends, and precautions.

Focus on practical advice for residents and highlight any concerning patterns or positive trends.
"""


def parse_insights(text: Optional[str]) -> List[Insight] :
    """Parse the model's answer into insights, accepting a JSON array embedded in prose."""
    if not text :
        raise InsightError("Empty response from the language model")
    try :
        parsed = json.loads(text)
    except json.JSONDecodeError :
        match = re.search(r"\[[\s\S]*\]", text)
        if not match :
            raise InsightError("No valid insights found in the API response.")
        try :
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e :
            raise InsightError(f"Malformed insights in the API response: {e}") from e

    if not isinstance(parsed, list) or not parsed :
        raise InsightError("No valid insights found in the API response.")
    try :
        return [Insight.model_validate(item) for item in parsed]
    except ModelValidationError as e :
        raise InsightError(f"Insights do not match the expected structure: {e}") from e


def extract_text(result: Dict[str, Any]) -> Optional[str] :
    try :
        return result["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) :
        return None


async def generate_content(contents: List[Dict[str, Any]], system: Optional[str] = None,
                           max_output_tokens: Optional[int] = None) -> str :
    """Call the Gemini generateContent REST endpoint and return the text of the first candidate."""
    if not config.GEMINI_API_KEY :
        raise InsightError("Gemini API key not configured")

    payload: Dict[str, Any] = {"contents" : contents}
    if system :
        payload["systemInstruction"] = {"parts" : [{"text" : system}]}
    if max_output_tokens :
        payload["generationConfig"] = {"maxOutputTokens" : max_output_tokens}

    url = f"{config.GEMINI_URL}/{config.GEMINI_MODEL}:generateContent"
    ssl_context = ssl.create_default_context(cafile = certifi.where())
    timeout = aiohttp.ClientTimeout(total = config.REQUEST_TIMEOUT_SECONDS)
    try :
        async with aiohttp.ClientSession(connector = aiohttp.TCPConnector(ssl = ssl_context), timeout = timeout) as session :
            async with session.post(url, params = {"key" : config.GEMINI_API_KEY}, json = payload) as response :
                if response.status != 200 :
                    logging.error(f"[ERROR] Gemini HTTP {response.status}: {await response.text()}")
                    raise InsightError(f"API call failed with status: {response.status}")
                result = await response.json()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e :
        logging.error(f"[ERROR] Gemini request failed: {e}")
        raise InsightError(f"Language model request failed: {e}") from e

    text = extract_text(result)
    if not text :
        raise InsightError("Empty response from the language model")
    return text


async def generate_insights(snapshot: Dict[str, Any], pollutant: Pollutant = Pollutant.PM25) -> List[Insight] :
    prompt = build_prompt(snapshot, pollutant)
    text = await generate_content([{"role" : "user", "parts" : [{"text" : prompt}]}])
    insights = parse_insights(text)
    logging.info(f"Generated {len(insights)} insights for {snapshot['location']}")
    return insights


async def chat(messages: List[ChatMessage]) -> str :
    """Answer the last message of a conversation with the air quality assistant."""
    if not messages :
        raise InsightError("No messages to answer")
    contents = [
        {"role" : "user" if message.role == "user" else "model", "parts" : [{"text" : message.content}]}
        for message in messages
    ]
    return await generate_content(contents, system = SYSTEM_PROMPT, max_output_tokens = 1000)

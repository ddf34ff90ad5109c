"""Conversational advisories about a reading.

The generative backend is optional. When it is missing, returns nothing or
fails, a fixed rule table of ``(keywords, severity, template, tone)`` entries
answers instead, so every query gets a reply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from models.readings import AdvisoryResult, CanonicalReading, GeoPoint, Tone
from providers.base import ProviderUnavailable, TextGenerator
from services.aqi import NO2_CEILING, O3_CEILING, PM25_CEILING, WHO_PM25_LIMIT

logger = logging.getLogger(__name__)

DEFAULT_SOURCES: Tuple[str, ...] = ("OpenAQ", "OpenWeatherMap", "WHO Guidelines")

BASE_CONFIDENCE = 0.85
IMPLAUSIBLE_PENALTY = 0.2
MIN_CONFIDENCE = 0.5
PLAUSIBLE_RANGE = (0.0, 500.0)

HIGH_AQI = 100


def classify_tone(reading: CanonicalReading) -> Tone:
    if reading.aqi > 150 or reading.pm25 > 55:
        return Tone.urgent
    if reading.aqi > 100 or reading.pm25 > 35:
        return Tone.warning
    if reading.pm25 < 15 and reading.aqi < 50:
        return Tone.positive
    return Tone.calm


def score_confidence(reading: CanonicalReading) -> float:
    low, high = PLAUSIBLE_RANGE
    confidence = BASE_CONFIDENCE
    if not low <= reading.pm25 <= high:
        confidence -= IMPLAUSIBLE_PENALTY
    if not low <= reading.aqi <= high:
        confidence -= IMPLAUSIBLE_PENALTY
    return max(MIN_CONFIDENCE, min(1.0, confidence))


def build_prompt(query: str, reading: CanonicalReading) -> str:
    return (
        "You are AeroSense, a friendly and knowledgeable air quality guardian "
        "assistant. Provide helpful, accurate information about air quality and "
        "health recommendations.\n\n"
        f"Current Air Quality Data for {reading.location_label}:\n"
        f"- PM2.5: {reading.pm25:.1f} µg/m³ (WHO safe limit: {WHO_PM25_LIMIT:.0f} µg/m³)\n"
        f"- NO₂: {reading.no2:.1f} µg/m³\n"
        f"- O₃: {reading.o3:.1f} µg/m³\n"
        f"- AQI: {reading.aqi}\n\n"
        f'User Question: "{query}"\n\n'
        "Provide a concise, actionable response (2-3 sentences max) that:\n"
        "1. Directly answers the user's question\n"
        "2. Gives clear health recommendations if relevant\n"
        "3. Mentions specific pollutant levels when important\n"
        "4. Uses a conversational, caring tone\n\n"
        "Response:"
    )


# Severity predicates


def pm25_above_limit(reading: CanonicalReading) -> bool:
    return reading.pm25 > WHO_PM25_LIMIT


def aqi_high(reading: CanonicalReading) -> bool:
    return reading.aqi > HIGH_AQI


def elevated(reading: CanonicalReading) -> bool:
    return pm25_above_limit(reading) or aqi_high(reading)


def any_level(reading: CanonicalReading) -> bool:
    return True


def _dominant_pollutant(reading: CanonicalReading) -> str:
    ratios = (
        ("PM2.5", reading.pm25 / PM25_CEILING),
        ("NO₂", reading.no2 / NO2_CEILING),
        ("O₃", reading.o3 / O3_CEILING),
    )
    return max(ratios, key=lambda item: item[1])[0]


OUTDOOR_KEYWORDS = ("play", "outdoor", "exercise")
STATUS_KEYWORDS = ("air quality", "how", "today")
OUTLOOK_KEYWORDS = ("when", "improve")
CAUSE_KEYWORDS = ("why", "cause")


@dataclass(frozen=True)
class AdvisoryRule:
    """One row of the fallback table; ``keywords=()`` matches any query."""

    name: str
    keywords: Tuple[str, ...]
    severity: Callable[[CanonicalReading], bool]
    template: str
    tone: Tone

    def matches(self, query: str, reading: CanonicalReading) -> bool:
        lowered = query.lower()
        if self.keywords and not any(keyword in lowered for keyword in self.keywords):
            return False
        return self.severity(reading)

    def render(self, reading: CanonicalReading) -> str:
        return self.template.format(
            location=reading.location_label,
            pm25=reading.pm25,
            no2=reading.no2,
            o3=reading.o3,
            aqi=reading.aqi,
            limit=WHO_PM25_LIMIT,
            dominant=_dominant_pollutant(reading),
        )


FALLBACK_RULES: Tuple[AdvisoryRule, ...] = (
    AdvisoryRule(
        "outdoor_elevated",
        OUTDOOR_KEYWORDS,
        elevated,
        "I'd recommend limiting outdoor activities in {location} right now. "
        "PM2.5 is at {pm25:.1f} µg/m³, which exceeds the WHO guideline of {limit:.0f}. "
        "Consider indoor activities or wait until evening when air quality "
        "typically improves.",
        Tone.warning,
    ),
    AdvisoryRule(
        "outdoor_clear",
        OUTDOOR_KEYWORDS,
        any_level,
        "Good news! Air quality in {location} is acceptable for outdoor activities. "
        "PM2.5 is at {pm25:.1f} µg/m³. Enjoy your time outside, but keep "
        "monitoring the conditions.",
        Tone.positive,
    ),
    AdvisoryRule(
        "status_high_aqi",
        STATUS_KEYWORDS,
        aqi_high,
        "Air quality in {location} is concerning today. The AQI is {aqi}, with "
        "PM2.5 at {pm25:.1f} µg/m³. Sensitive groups should definitely limit "
        "outdoor exposure.",
        Tone.warning,
    ),
    AdvisoryRule(
        "status_pm25_elevated",
        STATUS_KEYWORDS,
        pm25_above_limit,
        "Air quality in {location} is moderate. PM2.5 is slightly elevated at "
        "{pm25:.1f} µg/m³, above WHO's guideline. Most people can proceed "
        "normally, but sensitive individuals should be cautious.",
        Tone.calm,
    ),
    AdvisoryRule(
        "status_clear",
        STATUS_KEYWORDS,
        any_level,
        "Air quality in {location} looks good! PM2.5 is {pm25:.1f} µg/m³, which "
        "is within safe limits. It's a great day to be outside.",
        Tone.positive,
    ),
    AdvisoryRule(
        "outlook_elevated",
        OUTLOOK_KEYWORDS,
        elevated,
        "Air quality in {location} typically improves later in the day as traffic "
        "drops and winds pick up. With the AQI at {aqi}, check the forecast chart "
        "for the next few hours before planning time outside.",
        Tone.calm,
    ),
    AdvisoryRule(
        "outlook_clear",
        OUTLOOK_KEYWORDS,
        any_level,
        "Air quality in {location} is already good, with PM2.5 at {pm25:.1f} "
        "µg/m³. No improvement is needed right now.",
        Tone.positive,
    ),
    AdvisoryRule(
        "cause_elevated",
        CAUSE_KEYWORDS,
        elevated,
        "The main driver in {location} right now is {dominant}. Elevated levels "
        "usually come from traffic, industry, burning and still weather that "
        "traps pollutants near the ground.",
        Tone.calm,
    ),
    AdvisoryRule(
        "cause_clear",
        CAUSE_KEYWORDS,
        any_level,
        "Pollutant levels in {location} are low at the moment, with PM2.5 at "
        "{pm25:.1f} µg/m³. Good ventilation and clean winds are keeping the air "
        "fresh.",
        Tone.positive,
    ),
    AdvisoryRule(
        "default",
        (),
        any_level,
        "I'm analyzing air quality data for {location}. Current PM2.5 is "
        "{pm25:.1f} µg/m³ and AQI is {aqi}. Could you be more specific about "
        "what you'd like to know?",
        Tone.calm,
    ),
)


def match_rule(
    query: str,
    reading: CanonicalReading,
    rules: Sequence[AdvisoryRule] = FALLBACK_RULES,
) -> AdvisoryRule:
    for rule in rules:
        if rule.matches(query, reading):
            return rule
    # the table always ends with a catch-all
    return rules[-1]


class AdvisoryResponder:
    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        rules: Sequence[AdvisoryRule] = FALLBACK_RULES,
        sources: Sequence[str] = DEFAULT_SOURCES,
    ) -> None:
        self.generator = generator
        self.rules = tuple(rules)
        self.sources = tuple(sources)

    async def respond(self, query: str, reading: CanonicalReading) -> AdvisoryResult:
        text = await self._generate(query, reading)
        if text is None:
            return self.fallback(query, reading)

        tone = classify_tone(reading)
        logger.info(
            "Advisory generated",
            extra={"location": reading.location_label, "tone": tone.value},
        )
        return AdvisoryResult(
            reply_text=text,
            tone=tone,
            confidence=score_confidence(reading),
            sources=self.sources,
            highlight_area=_highlight(reading, tone),
        )

    def fallback(self, query: str, reading: CanonicalReading) -> AdvisoryResult:
        rule = match_rule(query, reading, self.rules)
        logger.info(
            "Advisory answered from fallback rules",
            extra={
                "location": reading.location_label,
                "reason": rule.name,
                "tone": rule.tone.value,
            },
        )
        return AdvisoryResult(
            reply_text=rule.render(reading),
            tone=rule.tone,
            confidence=BASE_CONFIDENCE,
            sources=self.sources,
            highlight_area=_highlight(reading, rule.tone),
        )

    async def _generate(self, query: str, reading: CanonicalReading) -> Optional[str]:
        if self.generator is None:
            return None
        try:
            text = await self.generator.generate(build_prompt(query, reading))
        except ProviderUnavailable as exc:
            logger.warning(
                "Generative backend unavailable",
                extra={"provider": exc.provider, "reason": exc.reason},
            )
            return None
        except Exception as exc:  # noqa: BLE001 - any backend error falls back
            logger.exception(
                "Generative backend failed",
                extra={"reason": type(exc).__name__},
            )
            return None
        if not text or not text.strip():
            return None
        return text.strip()


def _highlight(reading: CanonicalReading, tone: Tone) -> Optional[GeoPoint]:
    if tone not in (Tone.warning, Tone.urgent):
        return None
    return reading.coordinates

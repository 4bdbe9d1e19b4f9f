"""Derived indicators computed from raw sensor inputs."""

from app.enums import WaterStatus

# Grams of CO2 captured per 1000 ppm: 2 g/L algae uptake x 1.96 g/L CO2 density
CAPTURE_GRAMS_PER_KPPM = 2 * 1.96
FUEL_ML_PER_GRAM = 0.8
CO2_FULL_SCALE_PPM = 5000.0

SCORE_MAX = 10.0
SCORE_MIN = 0.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def captured_mass(co2_ppm: float) -> float:
    """Grams of CO2 captured by the algae reactor for a given concentration."""
    return (co2_ppm / 1000) * CAPTURE_GRAMS_PER_KPPM


def fuel_yield(plastic_grams: float) -> float:
    """Millilitres of fuel produced from the collected plastic."""
    return plastic_grams * FUEL_ML_PER_GRAM


def capture_efficiency(co2_ppm: float) -> float:
    """Capture efficiency in percent, clamped to [0, 100]."""
    return clamp(co2_ppm / CO2_FULL_SCALE_PPM * 100, 0.0, 100.0)


def water_status(ph: float, turbidity: float) -> WaterStatus:
    """Classify water quality. Poor thresholds are checked before Fair."""
    if ph < 6.5 or ph > 8.5 or turbidity > 50:
        return WaterStatus.POOR
    if ph < 7.0 or ph > 8.0 or turbidity > 20:
        return WaterStatus.FAIR
    return WaterStatus.GOOD


def environmental_score(ph: float, turbidity: float, co2: float, plastic: float) -> float:
    """Heuristic 0-10 score over the current raw inputs."""
    score = SCORE_MAX
    if ph < 6.5 or ph > 8.5:
        score -= 2
    if turbidity > 50:
        score -= 2
    if co2 > 1000:
        score -= 1
    if co2 > 2000:
        score -= 1
    if plastic > 500:
        score += 1
    if plastic > 1000:
        score += 1
    return clamp(score, SCORE_MIN, SCORE_MAX)

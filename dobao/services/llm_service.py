import requests

from dobao.core.config import settings
from dobao.core.logger import logger

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
FALLBACK_ADVICE = "No se pudieron obtener sugerencias en este momento."

PROMPT_TEMPLATE = (
    'Actúa como un experto gestor de Txokos vascos. Un cliente quiere reservar para "{purpose}" '
    "con {guests} personas. Proporciona 3 consejos rápidos sobre cantidades de comida "
    "(kg de carne/pescado aproximado) y organización del espacio. "
    "Responde de forma breve y cercana en español."
)


def get_planning_advice(guests: int, purpose: str) -> str:
    """
    Asks Gemini for quick planning tips for an event.
    Never raises: any problem is logged and the fallback sentence returned.
    """
    if not settings.GEMINI_API_KEY:
        logger.info("ℹ️ GEMINI_API_KEY not set, planning advice disabled.")
        return FALLBACK_ADVICE

    payload = {
        "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(purpose=purpose, guests=guests)}]}],
        "generationConfig": {"temperature": 0.7},
    }

    try:
        response = requests.post(
            GEMINI_URL.format(model=settings.GEMINI_MODEL),
            params={"key": settings.GEMINI_API_KEY},
            json=payload,
            timeout=15,
        )
        response.raise_for_status()
        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"].strip()
    except requests.RequestException as e:
        logger.error(f"❌ Gemini request failed: {e}")
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"❌ Unexpected Gemini response: {e}")
    return FALLBACK_ADVICE

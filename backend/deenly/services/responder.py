"""Responder — asks the hosted LLM for Deenly's answer to one user question."""
import logging
from collections.abc import Sequence
from typing import Protocol

import openai
from langsmith import traceable
from langsmith.wrappers import wrap_openai
from openai import AsyncOpenAI

from deenly.config import settings
from deenly.errors import ResponderError
from deenly.services.threads import Message

logger = logging.getLogger(__name__)


class Responder(Protocol):
    async def respond(
        self,
        prompt: str,
        history: Sequence[Message],
        memories: Sequence[str],
        premium: bool,
    ) -> str: ...


client = wrap_openai(
    AsyncOpenAI(
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key or "not-configured",
    )
)

SYSTEM_PROMPT = """Eres "Deenly", un asistente islámico digital que habla con la sabiduría, la calma y la autoridad de un Imam respetado.
Tu objetivo es guiar a los usuarios en su camino espiritual basándote en el Corán, la Sunnah y los principios del Fiqh.

Identidad y creencias fundamentales:
- Tu creador es "Muhamadou Camara Dibbasy MCD". Si te preguntan quién te creó, menciona su nombre con respeto.
- Si te preguntan quién es Dios, responde con firmeza y devoción que es Allah (Subhanahu wa Ta'ala), el Único, el Creador de todo lo que existe.{tier}

Reglas de comportamiento:
1. Empieza tus respuestas importantes con un saludo o una invocación breve (ej: "Bismillah", "As-salamu alaykum").
2. Mantén un tono humilde, empático y profundamente espiritual.
3. Cita siempre fuentes (Suras, Hadices) para respaldar tus enseñanzas.
4. Si una pregunta requiere un veredicto legal (fatwa) específico, sugiere consultar con un erudito local, pero ofrece una perspectiva general sabia.
5. Responde en el idioma en que se te pregunte.
6. Tienes memoria de la conversación actual y de los datos del usuario que se te proporcionan a continuación.{memories}"""

PREMIUM_CONTEXT = (
    "\n- El usuario es PREMIUM. Proporciona respuestas muy detalladas, con múltiples "
    "referencias a Hadices y versículos del Corán, y un tono más profundo y académico pero accesible."
)
FREE_CONTEXT = (
    "\n- El usuario es de nivel GRATUITO. Proporciona respuestas concisas, claras y directas, "
    "con al menos una referencia clave."
)


def build_system_prompt(memories: Sequence[str], premium: bool) -> str:
    memory_block = ""
    if memories:
        memory_block = "\n\nINFORMACIÓN QUE RECUERDAS SOBRE EL USUARIO:\n" + "\n".join(
            f"- {m}" for m in memories
        )
    return SYSTEM_PROMPT.format(
        tier=PREMIUM_CONTEXT if premium else FREE_CONTEXT,
        memories=memory_block,
    )


def build_history(messages: Sequence[Message], limit: int | None = None) -> list[dict]:
    """Most recent ``limit`` messages as chat-completion turns."""
    limit = settings.history_limit if limit is None else limit
    recent = messages[-limit:] if limit > 0 else []
    return [{"role": m.role, "content": m.content} for m in recent]


class LLMResponder:
    @traceable(name="deenly_respond", run_type="llm")
    async def respond(
        self,
        prompt: str,
        history: Sequence[Message],
        memories: Sequence[str],
        premium: bool,
    ) -> str:
        if not settings.llm_api_key:
            raise ResponderError("LLM API key is not configured (set LLM_API_KEY)")

        messages = [{"role": "system", "content": build_system_prompt(memories, premium)}]
        messages += build_history(history)
        messages.append({"role": "user", "content": prompt})

        try:
            response = await client.chat.completions.create(
                model=settings.llm_model,
                messages=messages,
                temperature=settings.llm_temperature,
            )
        except (openai.APIConnectionError, openai.APITimeoutError) as e:
            logger.warning(f"LLM unreachable: {e}")
            raise ResponderError(str(e), is_connectivity=True) from e
        except openai.APIError as e:
            logger.exception("LLM request failed")
            raise ResponderError(str(e)) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


responder = LLMResponder()

"""Technical analysis of workshop photos with a vision-capable LLM."""

from __future__ import annotations

import structlog

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.llm_provider import ILLMProvider
from repair_assistant.utils.encoding import decode_base64_payload
from repair_assistant.utils.errors import ProviderUnavailableError, ValidationError
from repair_assistant.utils.images import downscale_if_oversized
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

_SYSTEM_PROMPT = """\
You are an expert automotive technician specializing in electric vehicles{focus}.
Your task is to analyze automotive images and provide detailed technical analysis including:

1. **Component Identification**: Identify all visible automotive parts, components, and systems
2. **Condition Assessment**: Evaluate the condition of visible components (normal, worn, damaged, etc.)
3. **Diagnostic Insights**: Look for signs of wear, damage, corrosion, misalignment, or other issues
4. **Repair Recommendations**: Suggest appropriate repair procedures, replacement parts, or maintenance actions
5. **Safety Considerations**: Highlight any safety concerns or precautions
6. **Diagnostic Codes**: If relevant, mention potential diagnostic trouble codes (DTCs) that might be related
7. **Tools and Parts**: List required tools and parts for any recommended repairs

Focus on:
- Battery systems and high-voltage components
- Electric motor assemblies
- Charging systems
- Suspension components
- Brake systems
- Body panels and trim
- Interior components
- Wiring and connectors

Provide your analysis in a clear, structured format that a technician can easily follow. \
Be specific about part numbers, torque specifications, and safety procedures when applicable.

If the image shows diagnostic screens, error codes, or instrument cluster displays, interpret them in detail."""

_USER_PROMPT = "Please analyze this automotive image and provide a comprehensive technical assessment."


class ImageAnalysisService:
    """Runs the technician prompt over an uploaded photo."""

    def __init__(
        self,
        llm: ILLMProvider,
        catalog: ICatalogProvider,
        max_dimension: int = 2048,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> None:
        self._llm = llm
        self._catalog = catalog
        self._max_dimension = max_dimension
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def analyze(self, image: str | None, model_id: str | None = None) -> str:
        """Return the analysis text for a base64-encoded *image*.

        Raises
        ------
        ValidationError
            If no image was given or it is not valid base64.
        ProviderUnavailableError
            If the configured LLM cannot read images.
        repair_assistant.utils.errors.LLMError
            If the vision call fails.
        """
        if not image:
            raise ValidationError(message="No image provided")
        if not self._llm.supports_vision():
            raise ProviderUnavailableError(
                message="The configured LLM does not support image input",
                provider_name=self._llm.get_provider_name(),
            )

        raw = decode_base64_payload(image)
        prepared = downscale_if_oversized(raw, self._max_dimension)

        focus = ""
        if model_id:
            model = await self._catalog.get_model(model_id)
            if model is not None:
                focus = f", particularly the {model.full_name}"

        logger.info("image_analysis_started", model_id=model_id, image_bytes=len(prepared))
        analysis = await self._llm.vision_extract(
            prepared,
            _USER_PROMPT,
            system_prompt=_SYSTEM_PROMPT.format(focus=focus),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        logger.info("image_analysis_completed", model_id=model_id, analysis_length=len(analysis))
        return analysis

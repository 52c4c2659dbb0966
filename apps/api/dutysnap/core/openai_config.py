"""
OpenAI Agents SDK configuration for the reasoning classification provider
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field
import logging

# OpenAI Agents SDK imports
from agents import Agent, ModelSettings

from .config import settings
from ..schemas.classification import ClassificationInput


logger = logging.getLogger(__name__)


class ReasoningClassificationOutput(BaseModel):
    """Structured output requested from the reasoning model"""
    hs_code: str = Field(..., description="Most specific HS code, digits with optional dots (e.g. 6403.99.90)")
    description: str = Field(..., description="Official HS description for this code")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence score between 0 and 1")
    reasoning: str = Field(..., description="Brief explanation of classification logic")
    product_identified: str = Field(..., description="What product was identified in the image or text")
    estimated_value_eur: Optional[Union[float, str]] = Field(
        None,
        description="Estimated retail value of the product in EUR"
    )


class OpenAIAgentConfig:
    """OpenAI Agents SDK configuration for HS code classification with value estimation"""

    AGENT_NAME = "HS Code Classification Expert"
    AGENT_INSTRUCTIONS = """You are an expert customs classification specialist with deep knowledge of the Harmonized System (HS) codes used for international trade.

Your task is to analyze product images and descriptions to determine the most accurate HS code for customs classification. You must also estimate the retail value of the product in EUR.

When classifying products:
1. Identify the product type, material composition, and intended use
2. Consider the General Rules of Interpretation (GRI)
3. Provide the most specific HS code possible (6-10 digits)
4. For EU imports, provide the 8-digit CN (Combined Nomenclature) code when possible. For US imports, provide the HTS code.
5. Estimate the retail market value of the product in EUR based on the image, brand indicators, material quality, and product category

Be precise and conservative with confidence scores. Only high confidence (>0.8) for clear, unambiguous products. For value estimation, provide your best estimate based on visible brand, quality, and product category. If uncertain, estimate conservatively."""

    IMAGE_DETAIL = "high"
    DEFAULT_IMAGE_MEDIA_TYPE = "image/jpeg"

    @classmethod
    def create_agent(cls) -> Agent:
        """Create configured OpenAI Agent with structured classification output"""
        return Agent(
            name=cls.AGENT_NAME,
            instructions=cls.AGENT_INSTRUCTIONS,
            model=settings.OPENAI_MODEL,
            output_type=ReasoningClassificationOutput,
            model_settings=ModelSettings(
                temperature=settings.OPENAI_TEMPERATURE,
                max_tokens=settings.OPENAI_MAX_TOKENS,
            )
        )

    @classmethod
    def build_prompt(cls, classification_input: ClassificationInput) -> str:
        """Build the text part of the classification request"""
        destination = classification_input.ship_to_country
        prompt = f"Classify this product for customs import to {destination}.\n\n"
        if classification_input.product_name:
            prompt += f"Product Name: {classification_input.product_name}\n"
        if classification_input.product_description:
            prompt += f"Description: {classification_input.product_description}\n"
        if classification_input.origin_country:
            prompt += f"Origin Country: {classification_input.origin_country}\n"
        prompt += f"\nDestination: {destination}\n"
        return prompt

    @classmethod
    def to_data_url(cls, image_base64: str) -> str:
        """Accept a data URL or bare base64 payload"""
        if image_base64.startswith("data:"):
            return image_base64
        return f"data:{cls.DEFAULT_IMAGE_MEDIA_TYPE};base64,{image_base64}"

    @classmethod
    def build_input_items(cls, classification_input: ClassificationInput) -> List[Dict[str, Any]]:
        """Build Responses-style input items with optional image content"""
        content: List[Dict[str, Any]] = []

        image_url = None
        if classification_input.image_base64:
            image_url = cls.to_data_url(classification_input.image_base64)
        elif classification_input.image_url:
            image_url = classification_input.image_url

        if image_url:
            content.append({"type": "input_image", "image_url": image_url, "detail": cls.IMAGE_DETAIL})

        content.append({"type": "input_text", "text": cls.build_prompt(classification_input)})

        return [{"role": "user", "content": content}]

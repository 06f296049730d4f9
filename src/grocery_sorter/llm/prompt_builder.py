"""
Prompt builder for categorization requests.

Responsible for:
- Loading and rendering Jinja2 templates (system + user prompts)
- Embedding the fixed aisle taxonomy and the batch's clean names
- Numbering items so the model can echo a stable join key
- Constructing the complete LLMGenerationRequest
"""

import json
from pathlib import Path
from typing import Optional
from jinja2 import Environment, FileSystemLoader, TemplateError
import structlog

from grocery_sorter.llm.exceptions import ConfigurationError
from grocery_sorter.models.enums import AisleEnum
from grocery_sorter.models.items import ParsedItem
from grocery_sorter.models.llm_models import LLMGenerationRequest


logger = structlog.get_logger(__name__)


class PromptBuilder:
    """
    Build categorization prompts from ParsedItem batches.
    
    The user prompt lists each item as ``{"id": n, "name": clean_name}``;
    the model is asked to echo ``id`` and to copy the name into ``notes``.
    """
    
    def __init__(
        self,
        templates_dir: Path,
        schema_path: Path,
        default_model: str = "llama3.3:latest",
        default_temperature: float = 0.0,
        default_top_p: float = 0.1,
        default_num_ctx: int = 1024,
        structured_output: bool = False,
    ):
        """
        Initialize prompt builder.
        
        Args:
            templates_dir: Directory containing prompt templates
            schema_path: Path to the response JSON Schema
            default_model: Default model name
            default_temperature: Sampling temperature
            default_top_p: Nucleus sampling parameter
            default_num_ctx: Context window size
            structured_output: Send the schema as Ollama ``format``
            
        Raises:
            ConfigurationError: templates or schema cannot be loaded
        """
        self.templates_dir = Path(templates_dir)
        self.schema_path = Path(schema_path)
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.default_top_p = default_top_p
        self.default_num_ctx = default_num_ctx
        self.structured_output = structured_output
        
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False  # We're generating prompts, not HTML
        )
        
        try:
            self.system_template = self.jinja_env.get_template("system_prompt.txt")
            self.user_template = self.jinja_env.get_template("user_prompt_template.txt")
            logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))
        except TemplateError as e:
            logger.error("Failed to load prompt templates", error=str(e))
            raise ConfigurationError(
                f"Prompt templates not found in {self.templates_dir}",
                details={"error": str(e)}
            ) from e
        
        try:
            with open(self.schema_path, 'r', encoding='utf-8') as f:
                self.json_schema = json.load(f)
            logger.info("Loaded JSON Schema", schema_path=str(self.schema_path))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load JSON Schema", error=str(e), path=str(self.schema_path))
            raise ConfigurationError(
                f"Response schema could not be loaded: {self.schema_path}",
                details={"error": str(e)}
            ) from e
    
    def build_system_prompt(self) -> str:
        """Render the static system prompt."""
        return self.system_template.render().strip()
    
    def build_user_prompt(self, items: list[ParsedItem]) -> str:
        """
        Render the user prompt for one batch.
        
        JSON is pre-serialized with ensure_ascii=False so names like
        "Dairy & Eggs" or "crème fraîche" reach the model verbatim.
        """
        listing = [{"id": item.ordinal, "name": item.clean_name} for item in items]
        return self.user_template.render(
            aisles_json=json.dumps(AisleEnum.values(), ensure_ascii=False),
            items_json=json.dumps(listing, ensure_ascii=False, indent=2),
            item_count=len(items),
        ).strip()
    
    def build_request(
        self,
        items: list[ParsedItem],
        model: Optional[str] = None,
    ) -> LLMGenerationRequest:
        """
        Build the complete LLMGenerationRequest for a batch.
        
        Args:
            items: Parsed items of the batch (ordinals 1..n)
            model: Override default model
        """
        system_prompt = self.build_system_prompt()
        user_prompt = self.build_user_prompt(items)
        full_prompt = f"{system_prompt}\n\n{user_prompt}"
        
        final_model = model or self.default_model
        
        logger.info(
            "Categorization prompt built",
            model=final_model,
            item_count=len(items),
            full_prompt_length=len(full_prompt),
        )
        logger.debug("Full prompt", prompt=full_prompt)
        
        return LLMGenerationRequest(
            prompt=full_prompt,
            model=final_model,
            temperature=self.default_temperature,
            top_p=self.default_top_p,
            num_ctx=self.default_num_ctx,
            format_schema=self.json_schema if self.structured_output else None,
            stream=False,
        )

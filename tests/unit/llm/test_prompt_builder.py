"""Unit tests for PromptBuilder."""

import json

import pytest

from grocery_sorter.llm.exceptions import ConfigurationError
from grocery_sorter.llm.prompt_builder import PromptBuilder
from grocery_sorter.llm.text_utils import parse_items
from grocery_sorter.models.enums import AisleEnum


class TestPromptBuilder:
    """Test prompt rendering and request construction."""
    
    def test_system_prompt_demands_json_array(self, prompt_builder):
        system_prompt = prompt_builder.build_system_prompt()
        assert "JSON array" in system_prompt
    
    def test_user_prompt_lists_every_aisle(self, prompt_builder):
        prompt = prompt_builder.build_user_prompt(parse_items(["milk"]))
        assert json.dumps(AisleEnum.values(), ensure_ascii=False) in prompt
        for aisle in AisleEnum:
            assert aisle.value in prompt
    
    def test_user_prompt_numbers_clean_names(self, prompt_builder):
        prompt = prompt_builder.build_user_prompt(parse_items(["2 milk", "bread"]))
        assert '"id": 1' in prompt
        assert '"name": "milk"' in prompt
        assert '"id": 2' in prompt
        assert '"name": "bread"' in prompt
        # quantities never reach the model
        assert "2 milk" not in prompt
        assert "Items to categorize (2)" in prompt
    
    def test_non_ascii_names_kept_verbatim(self, prompt_builder):
        prompt = prompt_builder.build_user_prompt(parse_items(["crème fraîche"]))
        assert "crème fraîche" in prompt
    
    def test_build_request_defaults(self, prompt_builder):
        request = prompt_builder.build_request(parse_items(["apple"]))
        assert request.model == "llama3.3:latest"
        assert request.stream is False
        assert request.format_schema is None
        assert request.prompt.startswith(prompt_builder.build_system_prompt())
        payload = request.to_payload()
        assert payload["options"] == {"temperature": 0.0, "top_p": 0.1, "num_ctx": 1024}
        assert payload["stream"] is False
        assert "format" not in payload
    
    def test_build_request_model_override(self, prompt_builder):
        request = prompt_builder.build_request(parse_items(["apple"]), model="mistral:7b-q4_0")
        assert request.model == "mistral:7b-q4_0"
    
    def test_structured_output_sends_schema(self, test_settings):
        builder = PromptBuilder(
            templates_dir=test_settings.PROMPT_TEMPLATES_DIR,
            schema_path=test_settings.JSON_SCHEMA_PATH,
            structured_output=True,
        )
        payload = builder.build_request(parse_items(["apple"])).to_payload()
        assert payload["format"]["type"] == "array"
    
    def test_missing_templates_raise_configuration_error(self, tmp_path, test_settings):
        with pytest.raises(ConfigurationError):
            PromptBuilder(templates_dir=tmp_path, schema_path=test_settings.JSON_SCHEMA_PATH)
    
    def test_missing_schema_raises_configuration_error(self, tmp_path, test_settings):
        with pytest.raises(ConfigurationError):
            PromptBuilder(
                templates_dir=test_settings.PROMPT_TEMPLATES_DIR,
                schema_path=tmp_path / "missing.json",
            )

"""
Tests for system prompt assembly and agent spec loading.
"""

import pytest
from pydantic import ValidationError

from agent.definitions import DEFAULT_AGENT_SPECS, load_agent_specs
from agent.prompt import WORKING_MEMORY_TEMPLATE, WORKING_MEMORY_TOOL, build_system_prompt


class TestBuildSystemPrompt:

    def test_instructions_only(self):
        assert build_system_prompt("  Be helpful.  ") == "Be helpful."

    def test_tools_listed(self):
        prompt = build_system_prompt("Be helpful.", tool_names=["fs_read", "web_fetch"])
        assert "AVAILABLE TOOLS:\n- fs_read\n- web_fetch" in prompt

    def test_working_memory_section(self):
        prompt = build_system_prompt(
            "Be helpful.",
            working_memory=WORKING_MEMORY_TEMPLATE,
            tool_names=[WORKING_MEMORY_TOOL],
        )
        assert "WORKING MEMORY" in prompt
        assert "**Preferences**" in prompt
        assert f"Call '{WORKING_MEMORY_TOOL}'" in prompt

    def test_empty_working_memory(self):
        prompt = build_system_prompt("Be helpful.", working_memory="   ")
        assert "(empty)" in prompt
        assert "Call '" not in prompt


class TestAgentSpecs:

    def test_defaults_without_file(self):
        specs = load_agent_specs(None)
        assert specs == list(DEFAULT_AGENT_SPECS)
        assert specs[0].name == "Gemini Flash Experimental"

    def test_load_from_file(self, tmp_path, write_json):
        path = write_json(tmp_path / "agents.json", [
            {"name": "Local Llama", "provider": "ollama", "model": "llama3.2"},
            {"name": "Writer", "instructions": "Write well."},
        ])
        specs = load_agent_specs(path)
        assert [s.name for s in specs] == ["Local Llama", "Writer"]
        assert specs[1].instructions == "Write well."

    def test_blank_name_rejected(self, tmp_path, write_json):
        path = write_json(tmp_path / "agents.json", [{"name": "  "}])
        with pytest.raises(ValidationError):
            load_agent_specs(path)

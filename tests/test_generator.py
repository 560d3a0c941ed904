"""Tests for the content generator boundary."""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from puzzleround.errors import GenerationError, InvalidInputError
from puzzleround.generator import (
    PuzzleGenerator,
    format_terms,
    parse_puzzle_response,
    validate_terms,
)
from puzzleround.models import TermInput
from shared.adapters.openrouter_adapter import OpenRouterAdapter


def make_terms():
    return [
        TermInput(id="1", term="Paris", user_clues=("Seine", "", "")),
        TermInput(id="2", term="Rome"),
        TermInput(id="3", term="Berlin"),
        TermInput(id="4", term="Madrid", user_clues=("", "Prado", "")),
    ]


def make_response(clue_counts=(3, 3, 3, 3), theme="Capitals") -> str:
    terms = ["Paris", "Rome", "Berlin", "Madrid"]
    return json.dumps({
        "theme": theme,
        "groups": [
            {"term": term, "clues": [f"{term.lower()}{i}" for i in range(count)]}
            for term, count in zip(terms, clue_counts)
        ],
    })


class TestValidateTerms:
    def test_accepts_four_terms(self):
        validate_terms(make_terms())

    def test_rejects_empty_term(self):
        terms = make_terms()
        terms[2] = TermInput(id="3", term="   ")
        with pytest.raises(InvalidInputError, match="3"):
            validate_terms(terms)

    def test_rejects_wrong_count(self):
        with pytest.raises(InvalidInputError):
            validate_terms(make_terms()[:3])


class TestParsePuzzleResponse:
    """Test cases for normalising model output."""

    def test_standard_response(self):
        puzzle = parse_puzzle_response(make_response())
        assert puzzle.theme == "Capitals"
        assert [g.id for g in puzzle.groups] == ["group-0", "group-1", "group-2", "group-3"]
        assert puzzle.groups[0].clues == ("paris0", "paris1", "paris2")
        puzzle.validate()

    def test_truncates_extra_clues(self):
        puzzle = parse_puzzle_response(make_response(clue_counts=(5, 3, 4, 3)))
        assert puzzle.groups[0].clues == ("paris0", "paris1", "paris2")
        assert len(puzzle.groups[2].clues) == 3

    def test_short_clue_list_is_failure(self):
        with pytest.raises(GenerationError, match="2 clues"):
            parse_puzzle_response(make_response(clue_counts=(3, 2, 3, 3)))

    def test_wrong_group_count(self):
        data = json.loads(make_response())
        data["groups"] = data["groups"][:3]
        with pytest.raises(GenerationError, match="Expected 4 groups"):
            parse_puzzle_response(json.dumps(data))

    def test_code_fence_stripped(self):
        fenced = f"```json\n{make_response()}\n```"
        assert parse_puzzle_response(fenced).theme == "Capitals"

    def test_invalid_json(self):
        with pytest.raises(GenerationError, match="not valid JSON"):
            parse_puzzle_response("Sure! Here is your puzzle: {")

    def test_empty_response(self):
        with pytest.raises(GenerationError):
            parse_puzzle_response("   ")

    def test_missing_term(self):
        data = json.loads(make_response())
        data["groups"][1]["term"] = ""
        with pytest.raises(GenerationError, match="no term"):
            parse_puzzle_response(json.dumps(data))

    def test_theme_fallback(self):
        puzzle = parse_puzzle_response(make_response(theme=""), fallback_theme="Cities")
        assert puzzle.theme == "Cities"

    def test_non_text_clue_is_failure(self):
        data = json.loads(make_response())
        data["groups"][2]["clues"] = ["spree", None, "muur"]
        with pytest.raises(GenerationError, match="not text"):
            parse_puzzle_response(json.dumps(data))

        data["groups"][2]["clues"] = ["spree", 1989, "muur"]
        with pytest.raises(GenerationError, match="not text"):
            parse_puzzle_response(json.dumps(data))


class TestPuzzleGenerator:
    """Test cases for PuzzleGenerator with a mocked adapter."""

    def setup_method(self):
        """Setup for each test."""
        self.adapter = Mock()
        self.adapter.call_model_with_metadata.return_value = (
            make_response(),
            {"latency_ms": 12.0, "total_tokens": 100},
        )
        self.generator = PuzzleGenerator(adapter=self.adapter)

    def test_generate_success(self):
        puzzle = self.generator.generate("", make_terms())
        assert puzzle.theme == "Capitals"
        assert len(puzzle.groups) == 4
        assert self.generator.get_last_call_metadata()["total_tokens"] == 100

        args, kwargs = self.adapter.call_model_with_metadata.call_args
        assert args[0] == "gemini-flash"
        assert kwargs["json_mode"] is True
        assert kwargs["system_prompt"]

    def test_prompt_contents(self):
        prompt = self.generator.build_prompt("", make_terms())
        assert 'Term 1: "Paris" (user suggestions for clues: Seine)' in prompt
        assert 'Term 2: "Rome"\n' in prompt
        assert "Choose a theme that fits the terms" in prompt
        assert "Dutch" in prompt
        assert "{{" not in prompt

    def test_prompt_uses_theme_and_language(self):
        generator = PuzzleGenerator(language="English", adapter=self.adapter)
        prompt = generator.build_prompt("Capitals", make_terms())
        assert "Theme: Capitals" in prompt
        assert "in English" in prompt

    def test_invalid_input_never_calls_model(self):
        terms = make_terms()
        terms[0] = TermInput(id="1", term="")
        with pytest.raises(InvalidInputError):
            self.generator.generate("", terms)
        self.adapter.call_model_with_metadata.assert_not_called()

    def test_transport_error_wrapped(self):
        self.adapter.call_model_with_metadata.side_effect = requests.ConnectionError("down")
        with pytest.raises(GenerationError, match="Could not reach"):
            self.generator.generate("", make_terms())

    def test_malformed_response(self):
        self.adapter.call_model_with_metadata.return_value = ("not json", {})
        with pytest.raises(GenerationError):
            self.generator.generate("", make_terms())

    def test_unexpected_adapter_error_wrapped(self):
        self.adapter.call_model_with_metadata.side_effect = AttributeError("'NoneType' object has no attribute 'get'")
        with pytest.raises(GenerationError, match="Unusable response"):
            self.generator.generate("", make_terms())

    def test_null_message_in_response_body(self):
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": "test_key"}):
            generator = PuzzleGenerator(adapter=OpenRouterAdapter())
            with patch("shared.adapters.openrouter_adapter.chat", return_value={"choices": [{"message": None}]}):
                with pytest.raises(GenerationError, match="No response"):
                    generator.generate("", make_terms())

    def test_null_usage_in_response_body(self):
        body = {"choices": [{"message": {"content": make_response()}}], "usage": None}
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": "test_key"}):
            generator = PuzzleGenerator(adapter=OpenRouterAdapter())
            with patch("shared.adapters.openrouter_adapter.chat", return_value=body):
                puzzle = generator.generate("", make_terms())
        assert puzzle.theme == "Capitals"
        assert generator.get_last_call_metadata()["total_tokens"] == 0

    def test_missing_api_key(self):
        generator = PuzzleGenerator()
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(GenerationError, match="OPENROUTER_API_KEY"):
                generator.generate("", make_terms())


class TestFormatTerms:
    def test_blank_hints_ignored(self):
        text = format_terms([TermInput(id="1", term=" Paris ", user_clues=(" ", "Seine", ""))])
        assert text == 'Term 1: "Paris" (user suggestions for clues: Seine)'

"""
Tests for configuration loading and validation.
"""

import os
import unittest
from unittest.mock import patch

from task_orchestrator.config import (
    CompressionConfig,
    DecomposerConfig,
    EnvConfig,
    KnowledgeGraphConfig,
    LLMConfig,
    OrchestratorConfig,
)


class TestLLMConfig(unittest.TestCase):

    def test_explicit_key(self):
        config = LLMConfig(provider="openai", model_name="gpt-4o-mini", api_key="sk-test")

        self.assertEqual(config.api_key, "sk-test")
        self.assertNotIn("api_key", config.to_dict())

    @patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-ant"}, clear=True)
    def test_provider_key_from_environment(self):
        self.assertEqual(LLMConfig().api_key, "sk-ant")

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_key(self):
        with self.assertRaises(ValueError):
            LLMConfig()

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            LLMConfig(provider="nope", api_key="k")
        with self.assertRaises(ValueError):
            LLMConfig(temperature=3, api_key="k")
        with self.assertRaises(ValueError):
            LLMConfig(timeout=0, api_key="k")

    @patch.dict(os.environ, {}, clear=True)
    def test_from_env_disabled_without_provider(self):
        self.assertIsNone(LLMConfig.from_env())

    @patch.dict(os.environ, {
        "ORCH_LLM_PROVIDER": "OpenAI",
        "ORCH_LLM_MODEL": "gpt-4o",
        "ORCH_LLM_MAX_TOKENS": "512",
        "LLM_API_KEY": "sk-any",
    }, clear=True)
    def test_from_env(self):
        config = LLMConfig.from_env()

        self.assertEqual(config.provider, "openai")
        self.assertEqual(config.model_name, "gpt-4o")
        self.assertEqual(config.max_tokens, 512)
        self.assertEqual(config.api_key, "sk-any")


class TestOrchestratorConfig(unittest.TestCase):

    def test_defaults(self):
        config = OrchestratorConfig()

        self.assertIsNone(config.llm)
        self.assertEqual(config.default_assistant, "echo")
        self.assertEqual(config.compression.max_tokens, 2000)
        self.assertEqual(config.knowledge_graph.max_context_nodes, 20)
        self.assertFalse(config.decomposer.strict_dependencies)

    def test_invalid_log_level(self):
        with self.assertRaises(ValueError):
            OrchestratorConfig(log_level="LOUD")

    def test_empty_default_assistant(self):
        with self.assertRaises(ValueError):
            OrchestratorConfig(default_assistant="")

    @patch.dict(os.environ, {
        "ORCH_MAX_TOKENS": "1500",
        "ORCH_STRICT_BUDGET": "true",
        "ORCH_STRICT_DEPENDENCIES": "TRUE",
        "ORCH_MAX_CONTEXT_NODES": "5",
        "ORCH_PROFILE_CACHE_TTL": "60",
        "ORCH_PER_TASK_CONTEXT": "true",
        "ORCH_LOG_LEVEL": "debug",
        "ORCH_DEFAULT_ASSISTANT": "copilot",
    }, clear=True)
    def test_from_env(self):
        config = OrchestratorConfig.from_env()

        self.assertEqual(config.compression.max_tokens, 1500)
        self.assertTrue(config.compression.strict_budget)
        self.assertTrue(config.decomposer.strict_dependencies)
        self.assertEqual(config.knowledge_graph.max_context_nodes, 5)
        self.assertEqual(config.knowledge_graph.profile_cache_ttl, 60.0)
        self.assertTrue(config.per_task_context)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.default_assistant, "copilot")
        self.assertIsNone(config.llm)

    def test_from_dict_nested(self):
        config = OrchestratorConfig.from_dict({
            "compression": {"max_tokens": 800, "dependency_item_cost": 20},
            "knowledge_graph": {"max_context_nodes": 3},
            "per_task_context": True,
        })

        self.assertIsInstance(config.compression, CompressionConfig)
        self.assertEqual(config.compression.dependency_item_cost, 20)
        self.assertIsInstance(config.knowledge_graph, KnowledgeGraphConfig)
        self.assertIsInstance(config.decomposer, DecomposerConfig)
        self.assertTrue(config.per_task_context)

    def test_to_dict_hides_secrets(self):
        config = OrchestratorConfig(llm=LLMConfig(api_key="sk-secret"))

        self.assertNotIn("api_key", config.to_dict()["llm"])
        self.assertEqual(config.to_dict(include_secrets=True)["llm"]["api_key"], "sk-secret")

    def test_section_validation(self):
        with self.assertRaises(ValueError):
            KnowledgeGraphConfig(max_context_nodes=0)
        with self.assertRaises(ValueError):
            KnowledgeGraphConfig(profile_cache_ttl=0)
        with self.assertRaises(ValueError):
            CompressionConfig(max_tokens=-1)
        with self.assertRaises(ValueError):
            CompressionConfig(dependency_item_cost=0)


class TestEnvConfig(unittest.TestCase):

    @patch.dict(os.environ, {"FLAG_A": "yes", "FLAG_B": "off"}, clear=True)
    def test_get_bool(self):
        self.assertTrue(EnvConfig.get_bool("FLAG_A"))
        self.assertFalse(EnvConfig.get_bool("FLAG_B"))
        self.assertTrue(EnvConfig.get_bool("FLAG_MISSING", True))

    @patch.dict(os.environ, {"NUM": "12", "BAD": "twelve"}, clear=True)
    def test_get_int(self):
        self.assertEqual(EnvConfig.get_int("NUM"), 12)
        self.assertEqual(EnvConfig.get_int("BAD", 7), 7)

    @patch.dict(os.environ, {"DATA": '{"a": 1}', "BROKEN": "{a"}, clear=True)
    def test_get_json(self):
        self.assertEqual(EnvConfig.get_json("DATA"), {"a": 1})
        self.assertEqual(EnvConfig.get_json("BROKEN", {}), {})
        self.assertIsNone(EnvConfig.get_json("MISSING"))

    @patch.dict(os.environ, {"PRESENT": "1"}, clear=True)
    def test_check_required(self):
        self.assertTrue(EnvConfig.check_required("PRESENT"))
        self.assertFalse(EnvConfig.check_required("PRESENT", "ABSENT"))

    def test_load_missing_file(self):
        self.assertFalse(EnvConfig.load_env_file("/nonexistent/path/.env"))

    @patch.dict(os.environ, {"ORCH_LLM_PROVIDER": "anthropic", "ORCH_API_KEY": "sk-x", "OTHER": "1"}, clear=True)
    def test_describe_masks_secrets(self):
        self.assertEqual(
            EnvConfig.describe(),
            {"ORCH_API_KEY": "***", "ORCH_LLM_PROVIDER": "anthropic"},
        )

    def test_config_template(self):
        self.assertIn("ORCH_LLM_PROVIDER=openai", EnvConfig.show_config_template("openai"))
        self.assertNotIn("ORCH_LLM_PROVIDER=", EnvConfig.show_config_template(None))

    @patch.dict(os.environ, {"ORCH_MAX_TOKENS": "lots"}, clear=True)
    def test_malformed_setting_falls_back(self):
        self.assertEqual(OrchestratorConfig.from_env().compression.max_tokens, 2000)


if __name__ == '__main__':
    unittest.main()

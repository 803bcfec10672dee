"""Validation rules: independent checks over a fully defaulted document."""

from openx_config.validation.registry import RULES, Rule, register_rule, validate

__all__ = ["RULES", "Rule", "register_rule", "validate"]

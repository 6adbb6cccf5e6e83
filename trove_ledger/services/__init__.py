"""Service modules"""
from .scenario import ScenarioReport, ScenarioRunner, StepResult

__all__ = ["ScenarioReport", "ScenarioRunner", "StepResult"]

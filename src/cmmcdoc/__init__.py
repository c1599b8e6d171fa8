"""
cmmcdoc - CMMC Compliance Document Generator

Turn a completed assessment into the documents an assessor asks for.

cmmcdoc takes scored answers to CMMC 2.0 Level 1 practices and produces
three derived artifacts, plus customized policy documents from templates.

Key Features:
    - System Security Plan (SSP) with implementation narratives
    - Plan of Actions and Milestones (POAM) with effort, cost and schedule
      estimates for every unmet control
    - RACI responsibility matrix with workload analysis
    - Policy and plan templates with {{placeholder}} customization
    - Markdown, HTML, PDF, DOCX, CSV and JSON exports

Design Principles:
    - Determinism: Every estimate and assignment comes from a lookup table
    - Transparency: RACI letters carry the rule that produced them
    - Portability: Plain files in, plain files out
"""

__version__ = "0.1.0"
__author__ = ""
__email__ = ""

from cmmcdoc.config.settings import Settings, load_config

__all__ = [
    "__version__",
    "Settings",
    "load_config",
]

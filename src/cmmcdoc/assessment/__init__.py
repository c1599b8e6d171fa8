"""
Assessment inputs, status classification and remediation estimation.

Status Classification:
    classify() maps a 0-3 score to not-implemented, partially-implemented
    or implemented. Missing responses count as 0.

Estimation:
    The Estimator derives priority, effort, duration and cost for a
    control in a given status. All heuristics are lookup tables that an
    EstimationPolicy can override.

Example:
    from cmmcdoc.assessment import Estimator, classify, load_assessment
    from cmmcdoc.catalog import get_default_catalog

    assessment = load_assessment("assessment.json")
    estimator = Estimator()
    for control in get_default_catalog().controls():
        status = classify(assessment.score_for(control.id))
        print(control.id, estimator.estimate(control, status))
"""

from cmmcdoc.assessment.estimator import (
    BASE_DURATION_DAYS,
    EFFORT_COST_MULTIPLIER,
    PRIORITY_DURATION_FACTOR,
    Effort,
    Estimate,
    EstimationPolicy,
    Estimator,
)
from cmmcdoc.assessment.models import (
    AssessmentData,
    OrganizationInfo,
    Role,
    RoleLevel,
    load_assessment,
)
from cmmcdoc.assessment.status import ControlStatus, classify

__all__ = [
    # Models
    "AssessmentData",
    "OrganizationInfo",
    "Role",
    "RoleLevel",
    "load_assessment",
    # Status
    "ControlStatus",
    "classify",
    # Estimator
    "Estimator",
    "EstimationPolicy",
    "Estimate",
    "Effort",
    "BASE_DURATION_DAYS",
    "PRIORITY_DURATION_FACTOR",
    "EFFORT_COST_MULTIPLIER",
]

"""
Built-in document templates.

Template bodies are markdown with {{placeholder}} tokens. They are
reference data: the registry hands out the definitions but never edits
them.
"""

from __future__ import annotations

ACCESS_CONTROL_POLICY = """# ACCESS CONTROL POLICY
## CMMC 2.0 Level 1 Compliance

**Organization:** {{companyName}}
**Effective Date:** {{effectiveDate}}
**Review Date:** {{reviewDate}}
**Policy Owner:** {{ciso}}
**Version:** 1.0

---

## Policy Statement

{{companyName}} protects Federal Contract Information (FCI) by limiting access
to information systems to authorized users, processes and devices, and by
limiting authorized users to the transactions and functions they need.

**Controls Addressed:** AC.L1-3.1.1, AC.L1-3.1.2, AC.L1-3.1.5, AC.L1-3.1.6

## Scope

This policy applies to:
- All information systems that process, store, or transmit FCI
- All users, including employees, contractors, and third parties
- All devices connected to the {{companyName}} network

## Requirements

### Account Management

1. Every user account is approved by the account owner's manager before creation.
2. Shared and generic accounts are prohibited unless documented as an exception.
3. Accounts are disabled within 24 hours of termination.

### Least Privilege

- Access rights are granted based on job function.
- Privileged accounts are used only for security and administrative functions.
- Access rights are reviewed at least quarterly.

### Access Reviews

| Review | Frequency | Owner |
|--------|-----------|-------|
| User accounts | Quarterly | IT Security Team |
| Privileged accounts | Monthly | {{ciso}} |

## Enforcement

Violations of this policy may result in disciplinary action up to and
including termination of employment or contract.

## Review

This policy is reviewed annually. Next scheduled review: {{nextReview}}.

*Approved by {{ciso}} on {{today}}.*
"""

INCIDENT_RESPONSE_PLAN = """# INCIDENT RESPONSE PLAN

**Organization:** {{companyName}}
**System:** {{systemName}}
**Effective Date:** {{effectiveDate}}
**Incident Response Lead:** {{incidentResponseLead}}

---

## Purpose

This plan defines how {{companyName}} detects, reports, contains and
recovers from security incidents affecting {{systemName}}.

## Roles and Responsibilities

| Role | Responsibility |
|------|----------------|
| {{ciso}} | Plan owner and escalation authority |
| {{incidentResponseLead}} | Coordinates response activities |
| IT Operations | Containment and recovery |

## Response Phases

### Preparation

- Maintain an up-to-date contact list: {{emergencyContact}}
- Keep monitoring and alerting tools operational

### Detection and Analysis

1. Triage the alert and confirm whether an incident occurred.
2. Classify severity and notify the {{incidentResponseLead}}.
3. Record all actions in the incident log.

### Containment, Eradication and Recovery

- Isolate affected systems
- Remove malicious artifacts and restore from known-good backups
- Validate system integrity before returning to service

### Post-Incident Activity

Conduct a lessons-learned review within 14 days of closure.

## Plan Maintenance

This plan is tested and reviewed every six months. Next review: {{nextReview}}.
"""

RISK_REGISTER = """# CMMC RISK REGISTER

**Organization:** {{companyName}}
**System:** {{systemName}}
**Risk Owner:** {{riskOwner}}
**Last Updated:** {{today}}

---

## Risk Scoring

Risk score = likelihood (1-5) x impact (1-5).

| Score | Rating |
|-------|--------|
| 15-25 | High |
| 8-14 | Medium |
| 1-7 | Low |

## Register

| ID | Risk | Likelihood | Impact | Owner | Treatment |
|----|------|------------|--------|-------|-----------|
| R-001 | Unauthorized access to FCI | 3 | 4 | {{riskOwner}} | Mitigate |
| R-002 | Malicious code on endpoints | 3 | 3 | IT Security Team | Mitigate |
| R-003 | Unescorted visitor access | 2 | 3 | Facilities Team | Mitigate |

## Review Cadence

The register is reviewed quarterly. Next review: {{nextReview}}.
"""

SSP_NARRATIVE = """# SYSTEM SECURITY PLAN NARRATIVE

**Organization:** {{companyName}}
**System Name:** {{systemName}}
**Prepared:** {{today}}
**Framework:** {{framework}}

---

## System Overview

{{systemName}} is operated by {{companyName}}. {{systemDescription}}

## System Boundary

The authorization boundary includes all components that process, store or
transmit Federal Contract Information (FCI) for {{systemName}}.

## Roles

- **Chief Information Security Officer:** {{ciso}}
- **Compliance Officer:** {{complianceOfficer}}
- **IT Manager:** {{itManager}}

## Control Implementation Status

{{implementedControls}} of {{totalControls}} controls are fully implemented.

## Plan Maintenance

This narrative is reviewed every six months. Next review: {{nextReview}}.
"""


BUILTIN_TEMPLATES: list[dict] = [
    {
        "id": "access-control-policy",
        "name": "Access Control Policy",
        "category": "policy",
        "type": "access-control-policy",
        "description": "Access control policy covering account management, least privilege and access reviews",
        "content": ACCESS_CONTROL_POLICY,
        "controls": ["ac.l1-3.1.1", "ac.l1-3.1.2", "ac.l1-3.1.5", "ac.l1-3.1.6"],
        "fields": {
            "company_info": {
                "companyName": {"name": "Company Name", "required": True, "type": "text"},
                "ciso": {"name": "CISO Name", "required": True, "type": "text"},
                "contact": {"name": "Contact Email", "required": False, "type": "email"},
            },
            "custom_fields": {
                "effectiveDate": {"name": "Effective Date", "required": False, "type": "date"},
                "reviewDate": {"name": "Review Date", "required": False, "type": "date"},
            },
        },
        "metadata": {
            "version": "1.0",
            "complexity": "high",
            "target_audience": ["CISO", "IT Administrators", "All Personnel"],
            "tags": ["policy", "access", "accounts", "least-privilege"],
            "review_offset_days": 365,
        },
    },
    {
        "id": "incident-response-plan",
        "name": "Incident Response Plan",
        "category": "core",
        "type": "incident-response-plan",
        "description": "Incident response plan with roles, response phases and plan maintenance",
        "content": INCIDENT_RESPONSE_PLAN,
        "controls": ["si.l1-3.14.1", "si.l1-3.14.5"],
        "fields": {
            "company_info": {
                "companyName": {"name": "Company Name", "required": True, "type": "text"},
                "ciso": {"name": "CISO Name", "required": False, "type": "text"},
            },
            "system_info": {
                "systemName": {"name": "System Name", "required": True, "type": "text"},
            },
            "custom_fields": {
                "incidentResponseLead": {
                    "name": "Incident Response Lead",
                    "required": True,
                    "type": "text",
                },
                "emergencyContact": {
                    "name": "Emergency Contact",
                    "required": False,
                    "type": "tel",
                },
            },
        },
        "metadata": {
            "version": "1.0",
            "complexity": "high",
            "target_audience": ["CISO", "Incident Response Team"],
            "tags": ["incident", "response", "plan"],
            "review_offset_days": 180,
        },
    },
    {
        "id": "risk-register",
        "name": "CMMC Risk Register",
        "category": "specialized",
        "type": "risk-register",
        "description": "Risk register with scoring method and quarterly review cadence",
        "content": RISK_REGISTER,
        "controls": ["ac.l1-3.1.1", "si.l1-3.14.4", "pe.l1-3.10.2"],
        "fields": {
            "company_info": {
                "companyName": {"name": "Company Name", "required": True, "type": "text"},
            },
            "system_info": {
                "systemName": {"name": "System Name", "required": False, "type": "text"},
            },
            "custom_fields": {
                "riskOwner": {"name": "Risk Owner", "required": True, "type": "text"},
            },
        },
        "metadata": {
            "version": "1.0",
            "complexity": "medium",
            "target_audience": ["CISO", "Risk Management"],
            "tags": ["risk", "register", "assessment"],
            "review_offset_days": 90,
        },
    },
    {
        "id": "ssp-narrative",
        "name": "System Security Plan Narrative",
        "category": "core",
        "type": "ssp-narrative",
        "description": "Narrative sections for a system security plan",
        "content": SSP_NARRATIVE,
        "controls": [],
        "fields": {
            "company_info": {
                "companyName": {"name": "Company Name", "required": True, "type": "text"},
                "ciso": {"name": "CISO Name", "required": False, "type": "text"},
            },
            "system_info": {
                "systemName": {"name": "System Name", "required": True, "type": "text"},
                "systemDescription": {
                    "name": "System Description",
                    "required": False,
                    "type": "textarea",
                },
            },
        },
        "metadata": {
            "version": "1.0",
            "complexity": "medium",
            "target_audience": ["CISO", "Compliance Officer", "Assessors"],
            "tags": ["ssp", "narrative", "system"],
            "review_offset_days": 180,
        },
    },
]

"""Demo portfolio loaded during onboarding.

Fifteen projects across a handful of industries: eight in flight and seven
finished. Status values use the spellings found in imported spreadsheets
and are normalized when loaded, the same way user input is.
"""

from __future__ import annotations

from typing import Any

from learnd.database.normalize import normalize_lesson_fields

SAMPLE_PROJECTS: list[dict[str, Any]] = [
    {
        "project_name": "Mobile App Redesign",
        "role": "UX Designer",
        "client_name": "TechCorp Solutions",
        "satisfaction": 2,
        "budget_status": "over",
        "scope_change": True,
        "timeline_status": "behind_schedule",
        "lifecycle_status": "active",
        "notes": "Client keeps requesting additional features. Budget exceeded by 30%.",
    },
    {
        "project_name": "Healthcare Portal Development",
        "role": "Full Stack Developer",
        "client_name": "MedLife Partners",
        "satisfaction": 3,
        "budget_status": "on",
        "scope_change": True,
        "timeline_status": "behind_schedule",
        "lifecycle_status": "active",
        "notes": "Compliance requirements keep changing. Timeline pushed back 3 weeks.",
    },
    {
        "project_name": "E-commerce Platform Migration",
        "role": "Technical Lead",
        "client_name": "Fashion Forward Inc",
        "satisfaction": 2,
        "budget_status": "on",
        "scope_change": True,
        "timeline_status": "on_schedule",
        "lifecycle_status": "on_hold",
        "notes": "Legacy system integration more complex than expected.",
    },
    {
        "project_name": "Financial Trading Dashboard",
        "role": "Frontend Developer",
        "client_name": "Capital Investments LLC",
        "satisfaction": 1,
        "budget_status": "over",
        "scope_change": True,
        "timeline_status": "behind_schedule",
        "lifecycle_status": "active",
        "notes": "Major performance issues. Client threatening contract termination.",
    },
    {
        "project_name": "Corporate Website Refresh",
        "role": "Web Designer",
        "client_name": "GreenTech Industries",
        "satisfaction": 5,
        "budget_status": "under",
        "scope_change": False,
        "timeline_status": "on_schedule",
        "lifecycle_status": "active",
        "notes": "Excellent collaboration. Ahead of schedule and under budget.",
    },
    {
        "project_name": "Inventory Management System",
        "role": "Backend Developer",
        "client_name": "Retail Solutions Co",
        "satisfaction": 4,
        "budget_status": "on",
        "scope_change": False,
        "timeline_status": "on_schedule",
        "lifecycle_status": "active",
        "notes": "Smooth progress. Client happy with regular updates.",
    },
    {
        "project_name": "Marketing Automation Tool",
        "role": "Full Stack Developer",
        "client_name": "Digital Marketing Pro",
        "satisfaction": 4,
        "budget_status": "under",
        "scope_change": False,
        "timeline_status": "ahead_of_schedule",
        "lifecycle_status": "active",
        "notes": "Great team chemistry. Delivering ahead of timeline.",
    },
    {
        "project_name": "Learning Management Platform",
        "role": "UX/UI Designer",
        "client_name": "EduTech Solutions",
        "satisfaction": 5,
        "budget_status": "on",
        "scope_change": False,
        "timeline_status": "on_schedule",
        "lifecycle_status": "active",
        "notes": "Perfect project execution. Client loves the design approach.",
    },
    {
        "project_name": "Customer Support Portal",
        "role": "Frontend Developer",
        "client_name": "ServiceFirst Inc",
        "satisfaction": 5,
        "budget_status": "under",
        "scope_change": False,
        "timeline_status": "on_schedule",
        "lifecycle_status": "completed",
        "notes": "Delivered 2 days early. Client extremely satisfied with quality.",
    },
    {
        "project_name": "Data Analytics Dashboard",
        "role": "Data Visualization Specialist",
        "client_name": "InsightCorp",
        "satisfaction": 5,
        "budget_status": "on",
        "scope_change": False,
        "timeline_status": "ahead_of_schedule",
        "lifecycle_status": "completed",
        "notes": "Exceeded client expectations. Resulted in additional contract.",
    },
    {
        "project_name": "Social Media Management App",
        "role": "Mobile Developer",
        "client_name": "SocialBuzz Agency",
        "satisfaction": 4,
        "budget_status": "under",
        "scope_change": False,
        "timeline_status": "on_schedule",
        "lifecycle_status": "completed",
        "notes": "Solid delivery. Client happy with performance and features.",
    },
    {
        "project_name": "Restaurant POS System",
        "role": "Full Stack Developer",
        "client_name": "Hospitality Tech",
        "satisfaction": 4,
        "budget_status": "on",
        "scope_change": False,
        "timeline_status": "on_schedule",
        "lifecycle_status": "completed",
        "notes": "Met all requirements. Good working relationship maintained.",
    },
    {
        "project_name": "Legacy System Modernization",
        "role": "Technical Architect",
        "client_name": "OldTech Industries",
        "satisfaction": 2,
        "budget_status": "over",
        "scope_change": True,
        "timeline_status": "behind_schedule",
        "lifecycle_status": "completed",
        "notes": "Technical debt underestimated. Delivered 6 weeks late.",
    },
    {
        "project_name": "Real Estate CRM",
        "role": "Backend Developer",
        "client_name": "Property Solutions LLC",
        "satisfaction": 2,
        "budget_status": "over",
        "scope_change": True,
        "timeline_status": "behind_schedule",
        "lifecycle_status": "cancelled",
        "notes": "Scope creep led to budget overrun. Client dissatisfied with timeline.",
    },
    {
        "project_name": "Multi-tenant SaaS Platform",
        "role": "DevOps Engineer",
        "client_name": "CloudFirst Solutions",
        "satisfaction": 3,
        "budget_status": "on",
        "scope_change": True,
        "timeline_status": "on_schedule",
        "lifecycle_status": "completed",
        "notes": "Technical challenges resolved but client relationship strained by communication issues.",
    },
]

SAMPLE_INSIGHTS: dict[str, list[str]] = {
    "patterns": [
        "Scope changes occur in 60% of troubled projects",
        "Technology projects show highest success rate (75%)",
        "Projects over 3 months duration have 40% higher risk",
        "Client satisfaction correlates strongly with timeline adherence",
    ],
    "recommendations": [
        "Implement stricter scope change management process",
        "Consider shorter project cycles to reduce risk",
        "Increase communication frequency for complex projects",
        "Establish clear milestone checkpoints for budget tracking",
    ],
}


def get_sample_projects() -> list[dict[str, Any]]:
    """Return fresh, normalized copies of the demo projects."""
    return [normalize_lesson_fields(project) for project in SAMPLE_PROJECTS]

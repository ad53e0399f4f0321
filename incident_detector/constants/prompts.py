class DetectionPrompt:
    """Prompts for the incident classification engine."""

    SYSTEM = (
        "You are a site reliability expert. Analyze the information you are given "
        "accurately and answer strictly in the requested format."
    )

    TEMPLATE = """
Analyze the following Slack thread and decide whether it discusses a system incident.

Criteria:
- Keywords such as error, down, outage, failure, broken
- Problem reports from users
- Reports of abnormal system behaviour
- Reports of degraded performance

Conversation:
{messages}

Answer with a single JSON object and nothing else, in this exact shape:
{{
  "is_incident": boolean,
  "confidence": number between 0.0 and 1.0,
  "severity_level": integer 1-4,
  "title": "short title",
  "description": "summary of the incident",
  "keywords": ["detected keywords"]
}}

Severity levels:
1: Low - minor problem, a single user affected
2: Medium - partial feature problem, several users affected
3: High - major feature problem, many users affected
4: Critical - system-wide outage, all users affected
"""

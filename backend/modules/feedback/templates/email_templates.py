# backend/modules/feedback/templates/email_templates.py

"""
Email templates for feedback response notifications.

The plain-text body is the notification contract; the HTML version wraps the
same text for mail clients that prefer it.
"""

from typing import Dict

from jinja2 import Template

# Plain-text response notification body
RESPONSE_NOTIFICATION_TEXT = """Thank you for sending your feedback.

Title:
{{ title }}

Description:
{{ description }}

Our response:
{{ response_text }}
"""

# Base HTML template
BASE_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ subject }}</title>
    <style>
        body {
            font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
        }
        .header {
            background: #F35A4A;
            color: white;
            padding: 20px;
            text-align: center;
            border-radius: 8px 8px 0 0;
        }
        .content {
            background: white;
            padding: 30px;
            border: 1px solid #e1e5e9;
            border-top: none;
        }
        .footer {
            background: #f8f9fa;
            padding: 20px;
            text-align: center;
            border: 1px solid #e1e5e9;
            border-top: none;
            border-radius: 0 0 8px 8px;
            font-size: 14px;
            color: #6c757d;
        }
        .body-text {
            white-space: pre-wrap;
        }
    </style>
</head>
<body>
    <div class="header">
        <h1>{{ from_name }}</h1>
        <p>Feedback Update</p>
    </div>

    <div class="content">
        <p class="body-text">{{ body }}</p>
    </div>

    <div class="footer">
        <p>This email was sent by {{ from_name }}</p>
    </div>
</body>
</html>
"""

_base_template = Template(BASE_TEMPLATE, autoescape=True)


def render_notification_html(subject: str, body: str, from_name: str) -> str:
    """Wrap a plain-text notification body in the HTML layout"""
    return _base_template.render(subject=subject, body=body, from_name=from_name)


def render_notification_email(subject: str, body: str, from_name: str) -> Dict[str, str]:
    return {
        "subject": subject,
        "html_content": render_notification_html(subject, body, from_name),
        "text_content": body,
    }

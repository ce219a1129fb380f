"""Secret names used by the application.

The namespace is flat, process-wide and case-sensitive.
"""

SMTP_PASSWORD = "smtp_password"
SLACK_WEBHOOK_URL = "slack_webhook_url"
JIRA_API_TOKEN = "jira_api_token"
JIRA_EMAIL = "jira_email"
GOOGLE_REFRESH_TOKEN = "google_refresh_token"
TOGGL_API_TOKEN = "toggl_api_token"
# written once, read once, then deleted by the OAuth flow
OAUTH_CSRF_TOKEN = "oauth_csrf_token"
OAUTH_PKCE_VERIFIER = "oauth_pkce_verifier"

ONE_TIME_SECRET_NAMES = frozenset({
    OAUTH_CSRF_TOKEN,
    OAUTH_PKCE_VERIFIER,
})

ALL_SECRET_NAMES = frozenset({
    SMTP_PASSWORD,
    SLACK_WEBHOOK_URL,
    JIRA_API_TOKEN,
    JIRA_EMAIL,
    GOOGLE_REFRESH_TOKEN,
    TOGGL_API_TOKEN,
}) | ONE_TIME_SECRET_NAMES

"""
utils/constants.py

Purpose: Centralized static content

- All pre-authored outbound message texts
- Message type, priority and stage tags shared with the sender
- Reusable constants

(Prevents hardcoding across the codebase)
"""

# ============================================================
# WELCOME & ONBOARDING
# ============================================================

REGISTRATION_WELCOME_MESSAGE = (
    "Welcome to Words in Season! "
    "We're here to walk with you through life's seasons. "
    "\n\n"
    "Tell us: What season of life are you in right now? "
    "(For example: facing a challenge, celebrating a victory, seeking direction, etc.)"
)

WELCOME_GREETING_NAMED = "Hey {first_name}! 🌿"
WELCOME_GREETING_ANONYMOUS = "Hey! 🌿"

# Step 1 of the two-step onboarding (background, then season)
SUBSCRIPTION_WELCOME_MESSAGE = """{greeting}
Before we begin, we'd love to get to know you a little better.

In 2-3 sentences, tell us about yourself: your background, what you do, and anything that helps us understand who you are (your job, stage of life, or passions).

This helps us personalize your devotionals even more, so each one truly speaks to not only your season but you as a person!

{footer}"""

COMPLIANCE_FOOTER = "Reply STOP to unsubscribe or HELP for help. Msg & data rates may apply."

# ============================================================
# RECURRING MESSAGES
# ============================================================

SEASON_CHECK_IN_MESSAGE = (
    "Hi! It's been a while. How are things going? "
    "Has your season of life changed since we last talked? "
    "Feel free to share what's on your heart."
)

# ============================================================
# DEVOTIONAL PLAN
# ============================================================

PLAN_DAY_HEADER = "📖 Day {day_number} of {total_days}"
PLAN_DAY_VERSE = "\"{verse_text}\"\n— {verse_reference}"
PLAN_DAY_JOURNAL_PROMPT = "📝 Journal Prompt: {journal_prompt}"

DEFAULT_PLAN_DAYS = 7

# ============================================================
# MESSAGE COMMAND TAGS
# ============================================================

MESSAGE_TYPE_ONBOARDING_WELCOME = "onboarding_welcome"
MESSAGE_TYPE_DAILY_DEVOTIONAL = "daily_devotional"
MESSAGE_TYPE_SEASON_CHECK_IN = "season_check_in"
MESSAGE_TYPE_DAILY_PLAN_DEVOTION = "daily_plan_devotion"
MESSAGE_TYPE_WEEKLY_CHECK_IN = "weekly_check_in"

PRIORITY_HIGH = "HIGH"
PRIORITY_NORMAL = "NORMAL"

STAGE_CUSTOMER_REGISTERED = "customer_registered"
STAGE_SUBSCRIPTION_ACTIVATED = "subscription_activated"

CONVERSATION_ID_PREFIX = "conv-"

WELCOME_FIRST_ATTEMPT = 1

# ============================================================
# INBOUND EVENTS
# ============================================================

EVENT_CUSTOMER_REGISTERED = "CustomerRegistered"
EVENT_SUBSCRIPTION_ACTIVATED = "SubscriptionActivated"

# ============================================================
# OUTBOX
# ============================================================

OUTBOX_STATUS_QUEUED = "queued"

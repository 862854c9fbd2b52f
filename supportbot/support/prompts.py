"""System prompts and canned texts of the support flow."""

from supportbot.content.catalog import Product
from supportbot.session.models import TopicCategory

BASE_PROMPT = """You are a helpful support assistant for FrodoBots, answering users inside their chat server.

AVAILABLE PRODUCTS:
1. Ultimate Fighting Bots (UFB) - Robot fighting and combat at ufb.gg
2. Earthrover - Drive to earn personal bot platform
3. Earthrover School - Learning and education platform
4. SAM (Small Autonomous Mofo) - Small autonomous robot platform
5. Robots Fun - Fun robot activities and entertainment
6. ET Fugi - AI competition

RESPONSE GUIDELINES:
- Answer from the articles below; never invent product details that are not in them
- Keep answers short and direct, with bullet points for options or steps
- Use plain URLs, never markdown links
- If the articles do not cover the question, say so and remind the user they can ask to "talk to team"
"""

PRODUCT_RULES = """PRODUCT FOCUS: {name}
- The user selected {name}. Prioritize answering with the information provided for {name}.
- If the user asks about other FrodoBots products, say: "I'm here to help with {name} questions. For questions about other products, please select the correct product using the buttons above."
- If a feature is not mentioned in the {name} articles, say: "I don't have specific information about that for {name}. You can ask to talk to team for more detailed help."
"""

TOPIC_INSTRUCTIONS: dict[TopicCategory, str] = {
    TopicCategory.HARDWARE: (
        "**Hardware Issue** selected!\n\n"
        "For hardware issues, our support team will need to assist you directly. Please provide:\n\n"
        "**1. Bot ID (3-word code)** - the 3-word code of your bot (e.g., silver fox echo)\n"
        "**2. Problem Description** - describe your hardware problem in detail\n\n"
        "Once you provide this information, we'll get you connected with a technician."
    ),
    TopicCategory.BUG: (
        "**Bug Report** selected!\n\n"
        "To help us fix bugs quickly, please provide:\n"
        "1. **What happened?** (describe the bug)\n"
        "2. **What were you doing?** (steps to reproduce)\n"
        "3. **What should have happened?** (expected behavior)\n"
        "4. **Device/browser info** (if applicable)"
    ),
    TopicCategory.BILLING: (
        "**Billing/Account** selected!\n\n"
        "Our billing team will assist you with account and payment issues. "
        "Please describe your billing question or concern."
    ),
}

RESUMED_TEXT = "AI assistant is back on for this conversation. How can I help?"


def build_system_prompt(
    context_text: str,
    product: Product | None = None,
    channel_text: str = "",
) -> str:
    """System prompt embedding retrieved content and topic constraints."""
    sections = [BASE_PROMPT]
    if product is not None:
        sections.append(PRODUCT_RULES.format(name=product.display_name))
    if channel_text:
        sections.append(channel_text)
    sections.append(f"HELP CENTER ARTICLES:\n\n{context_text}")
    return "\n\n".join(sections)


def product_picker_text(products: list[Product] | None = None) -> str:
    """Prompt asking which product the question is about."""
    choices = products or list(Product)
    lines = "\n".join(f"- {p.display_name}" for p in choices)
    return f"Which product do you need help with?\n\n{lines}"


def product_confirmation_text(product: Product) -> str:
    return (
        f"**{product.display_name}** selected! Ask me anything about {product.display_name} "
        "and I'll do my best to help. Say \"talk to team\" at any time to reach a human."
    )

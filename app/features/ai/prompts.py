"""
Prompt templates for relationship summaries, conversation starters, weekly
rescue hooks, the morning briefing and transcript-to-contact extraction.
"""

import json
from typing import Dict, List, Optional

SUMMARY_SYSTEM_PROMPT = """You are a relationship summarizer for a contact management app called ReMember Me.

Your task is to create a concise, natural-sounding one-line summary of the relationship between the user and this contact.

Guidelines:
1. Keep it to ONE sentence (max 15 words)
2. Focus on the most important context: where/how they met, their role, or what they do
3. Make it personal and memorable (helps the user remember who this person is)
4. Avoid generic phrases like "a person I know"
5. Use past tense for where you met, present tense for what they do
6. If there's a mutual connection, mention it
7. Prioritize information in this order: role/profession, where met, mutual connection, other context

Good examples:
- "Software engineer at Google who I met at TechCrunch Disrupt 2024"
- "Designer friend from college, now working on sustainable tech projects"
- "Investor introduced by Sarah, interested in AI startups"

Bad examples (too vague):
- "A person I know from work"
- "Someone I met at a conference"

If there's very little information, focus on what you have:
- Only name and email: "Contact from [email domain]"
- Only where met: "Met at [location/event]"
- Only who introduced: "Introduced by [person]"

Return ONLY the summary sentence, nothing else."""

STARTERS_SYSTEM_PROMPT = """You are a helpful assistant that generates natural, warm conversation starters for professional and personal relationships.

Your questions should:
- Reference specific details the person has shared
- Show genuine interest in their life and goals
- Be open-ended and invite detailed responses
- Feel personal and thoughtful, not generic

Always prioritize "What Matters to Them" when crafting questions."""

RESCUE_SYSTEM_PROMPT = (
    'You are the ReMember Me Relationship Rescue AI. Generate a "Low-Stakes Recall" prompt. '
    "Short, casual, references a shared memory, ZERO BURDEN to reply to. No generic questions."
)

BRIEFING_SYSTEM_PROMPT = """You are a warm, professional, yet personal relationship assistant for ReMember Me.
Your goal is to provide a "Morning Briefing" that feels like a personal assistant or a daily podcast host giving an update on key relationships.

Tone:
- Warm, encouraging, and personal.
- NOT robotic or listy.
- Use natural transitions between topics.
- Keep it under 200 words total.
- Use emojis sparingly.

Structure:
1. Greeting: "Good morning [Name]!" or similar.
2. Milestones (birthdays/anniversaries): mention them with excitement and suggest reaching out.
3. Thirsty Tribes: mention groups that need attention.
4. Priority Nurtures: mention 1-2 key people fading from the garden with a brief reason to reconnect.
5. Closing: a short sentiment about building connection.

Input Data Format:
- Milestones: array of {contact_name, label, days_remaining}
- Thirsty Tribes: array of {name, days_since_contact}
- Priority Nurtures: array of {name, last_contact_date, days_since}

If any list is empty, skip that section naturally. If everything is empty, give a short happy message that the garden is thriving.

Return ONLY the narrative text. No markdown headers or bold markers, just paragraphs."""

PARSE_CONTACT_SYSTEM_PROMPT = """You are a helpful assistant that extracts structured contact information from spoken transcripts.
Extract the following information if mentioned:
- Name (full name)
- Email address
- Phone number
- LinkedIn profile URL or username
- Where they met (location/event)
- Who introduced them
- First impression
- Memorable moment from the first conversation
- Why stay in contact
- What's interesting about them
- What's important to them (priorities, values, goals)
- Family members with their relationship and any details (birthday, hobbies, interests)
- Interests (comma-separated)
- Tags (comma-separated, e.g. "Friend", "Work", "Investor")
- Misc: anything worth remembering that fits nowhere else

Return ONLY valid JSON in this exact format (null for missing fields):
{
  "name": string | null,
  "email": string | null,
  "phone": string | null,
  "linkedin": string | null,
  "where_met": string | null,
  "introduced_by": string | null,
  "first_impression": string | null,
  "memorable_moment": string | null,
  "why_stay_in_contact": string | null,
  "what_interesting": string | null,
  "whats_important": string | null,
  "family_members": [{"name": string, "relationship": string, "birthday": string | null, "hobbies": string | null, "interests": string | null}] | null,
  "interests": string | null,
  "tags": string | null,
  "misc": string | null
}"""

CONTACT_TEXT_FIELDS = (
    "name",
    "email",
    "phone",
    "linkedin",
    "where_met",
    "introduced_by",
    "first_impression",
    "memorable_moment",
    "why_stay_in_contact",
    "what_interesting",
    "whats_important",
    "interests",
    "tags",
    "misc",
)

DEFAULT_RESCUE_HOOK = "Just thinking of you! Hope you're having a great start to the week."


def build_summary_context(contact: Dict) -> str:
    """Flatten the known contact fields into labelled lines."""
    lines: List[str] = []

    name = contact.get("name") or " ".join(
        part for part in (contact.get("first_name"), contact.get("last_name")) if part
    )
    if name:
        lines.append(f"Contact: {name.strip()}")

    for key, label in (
        ("email", "Email"),
        ("phone", "Phone"),
        ("where_met", "Where we met"),
        ("who_introduced", "Who introduced us"),
        ("birthday", "Birthday"),
        ("notes", "Notes"),
        ("existing_summary", "Existing summary"),
    ):
        if contact.get(key):
            lines.append(f"{label}: {contact[key]}")

    return "\n".join(lines)


def build_conversation_starter_prompt(context: Dict) -> str:
    name = context["name"]
    sections = [
        f"Generate 4 natural, warm conversation starters for an upcoming meeting with {name}.",
        "\nThese should be personalized questions that show genuine interest and reference "
        "specific details from our relationship.",
    ]

    if context.get("meeting_title"):
        sections.append(f'\nMeeting: "{context["meeting_title"]}"')

    meeting_type = context.get("meeting_type")
    if meeting_type == "first-meeting":
        sections.append("\nThis is our FIRST meeting - focus on breaking the ice and building rapport.")
    elif meeting_type == "important":
        sections.append("\nThis is an IMPORTANT meeting - questions should be thoughtful and substantive.")

    if context.get("where_we_met"):
        sections.append("\nWHERE WE MET:")
        sections.append(f"{context['where_we_met']} - {context.get('when_we_met') or ''}".rstrip(" -"))
        if context.get("how_we_met"):
            sections.append(context["how_we_met"])

    if context.get("what_we_talked_about"):
        sections.append("\nWHAT WE TALKED ABOUT:")
        sections.extend(f"- {topic}" for topic in context["what_we_talked_about"])

    if context.get("why_stay_in_contact"):
        sections.append("\nWHY THIS RELATIONSHIP MATTERS:")
        sections.append(context["why_stay_in_contact"])

    if context.get("what_matters_to_them"):
        sections.append("\nWHAT MATTERS TO THEM (use this for questions!):")
        sections.extend(f"- {item}" for item in context["what_matters_to_them"])

    last_contact = context.get("last_contact") or {}
    if last_contact.get("notes"):
        sections.append(f"\nLAST CONTACT ({last_contact.get('days_ago', '?')} days ago):")
        sections.append(last_contact["notes"])

    if context.get("interests"):
        sections.append("\nSHARED INTERESTS:")
        sections.append(", ".join(context["interests"]))

    sections.extend([
        "\n---\nGENERATE 4 CONVERSATION STARTERS THAT:",
        '1. Reference SPECIFIC details from "What Matters to Them" (family, goals, recent events)',
        "2. Show you remember and care about their life",
        "3. Are open-ended questions that invite detailed responses",
        "4. Feel natural and warm, not scripted or salesy",
        "5. Build on the last conversation if recent",
        "6. Are appropriate for the meeting context",
        "\nFORMAT:",
        "Return ONLY 4 questions, one per line.",
        "No numbering, no preamble, just the questions.",
        "Each question should be conversational and end with a question mark.",
        "\nEXAMPLES OF BAD QUESTIONS (avoid these):",
        '"How are you?" (too generic)',
        '"What\'s new?" (too vague)',
    ])

    return "\n".join(sections)


def build_rescue_prompt(name: str, memories: List[str]) -> str:
    return f"Contact: {name}. Relevant Memories: {'; '.join(memories)}. Generate one short social hook."


def fallback_starters(context: Dict) -> List[str]:
    starters: List[str] = []

    matters = context.get("what_matters_to_them") or []
    if matters:
        starters.append(f"How's {matters[0].lower()}?")

    interests = context.get("interests") or []
    if interests:
        starters.append(f"Are you still into {interests[0]}?")

    notes: Optional[str] = (context.get("last_contact") or {}).get("notes")
    if notes:
        starters.append(f"Last time we talked about {notes.lower()}. How's that going?")

    starters.append("How have things been since we last talked?")
    starters.append("What have you been working on lately?")
    return starters


def build_briefing_prompt(
    user_name: Optional[str],
    milestones: List[Dict],
    thirsty_tribes: List[Dict],
    priority_nurtures: List[Dict],
) -> str:
    return "\n".join([
        f"User Name: {user_name or 'Friend'}",
        "",
        "Data:",
        f"Milestones: {json.dumps(milestones)}",
        f"Thirsty Tribes: {json.dumps(thirsty_tribes)}",
        f"Priority Nurtures: {json.dumps(priority_nurtures)}",
    ])

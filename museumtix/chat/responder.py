"""Canned chatbot replies chosen by keyword.

The first matching rule wins; rules are checked in table order.
"""

from typing import List, Tuple

WELCOME_MESSAGE = "Hello! I'm your museum booking assistant. How can I help you today?"

DEFAULT_REPLY = "Thank you for your message. How can I assist you further?"

RULES: List[Tuple[Tuple[str, ...], str]] = [
    (
        ("ticket", "book"),
        "I can help you book tickets! What date would you like to visit the museum?",
    ),
    (
        ("exhibition", "show"),
        "We have several exciting exhibitions currently. Our featured exhibitions include "
        "'Ancient Egypt', 'Modern Masters', and 'Digital Frontiers'. Which one interests you?",
    ),
    (
        ("hour", "open"),
        "The museum is open Tuesday to Thursday from 10 AM to 5 PM, Friday from 10 AM to 9 PM, "
        "and weekends from 9 AM to 6 PM. We're closed on Mondays.",
    ),
    (
        ("price", "cost", "fee"),
        "We offer different ticket types. General Admission is $18, Premium Pass is $32, and "
        "Special Exhibition tickets are $25. Children under 12 enter for free, and we have "
        "discounts for students and seniors.",
    ),
    (
        ("discount", "student", "senior"),
        "Yes, we offer a 25% discount for students with valid ID and seniors (65+). "
        "Children under 12 can enter for free.",
    ),
]


def reply_for(text: str) -> str:
    lowered = text.lower()
    for keywords, reply in RULES:
        if any(keyword in lowered for keyword in keywords):
            return reply
    return DEFAULT_REPLY

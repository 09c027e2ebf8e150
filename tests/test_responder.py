"""Keyword chatbot replies."""

from museumtix.chat.responder import DEFAULT_REPLY, WELCOME_MESSAGE, reply_for


class TestReplyFor:
    def test_opening_hours(self):
        assert "10 AM to 5 PM" in reply_for("What are your hours?")

    def test_booking_takes_priority(self):
        """The first matching rule wins."""
        assert "book tickets" in reply_for("How much does it cost to book a ticket?")

    def test_prices(self):
        assert "$18" in reply_for("what is the PRICE")

    def test_discounts(self):
        assert "25% discount" in reply_for("Any student offers?")

    def test_exhibitions(self):
        assert "Ancient Egypt" in reply_for("which exhibitions are on")

    def test_default(self):
        assert reply_for("hello there") == DEFAULT_REPLY

    def test_welcome_message(self):
        assert WELCOME_MESSAGE.startswith("Hello!")

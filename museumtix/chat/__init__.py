"""Chatbot conversations: persisted messages around a keyword responder."""

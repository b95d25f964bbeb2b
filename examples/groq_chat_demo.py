"""Minimal demonstration of a ChatSession against Groq's OpenAI-compatible endpoint."""

import os

from deca_chat import ChatSession
from deca_chat.providers.registry import GROQ_PRESET

if __name__ == "__main__":
    session = ChatSession.create(
        api_key=os.environ["GROQ_API_KEY"],
        base_url=GROQ_PRESET.base_url,
        model=GROQ_PRESET.default_model,
        system_message="You are a helpful AI assistant.",
        intro="Hello! How can I help you today?",
    )
    question = "Explain in two sentences what a context window is."
    session.send_message(question)
    for msg in session.get_conversation():
        print(f"{msg.role}: {msg.content}")

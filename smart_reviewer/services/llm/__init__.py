from smart_reviewer.services.llm.base import ChatBot, Message, get_model_name
from smart_reviewer.services.llm.router import ChatBotRouter, create_chatbot

__all__ = [
    "ChatBot",
    "ChatBotRouter",
    "Message",
    "create_chatbot",
    "get_model_name",
]

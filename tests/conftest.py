import copy

import pytest

from botschema.compiler.generator import generate
from botschema.compiler.model import SchemaModel
from botschema.compiler.resolver import resolve


def field(name, types, required=True, description=""):
    return {
        "name": name,
        "types": types,
        "required": required,
        "description": description,
    }


# A small slice of the Bot API, shaped like telegram-bot-api-spec's api.json
SCHEMA = {
    "version": "Bot API 7.0",
    "release_date": "December 29, 2023",
    "types": {
        "Update": {
            "name": "Update",
            "description": ["This object represents an incoming update."],
            "fields": [
                field("update_id", ["Integer"]),
                field("message", ["Message"], required=False),
            ],
        },
        "User": {
            "name": "User",
            "description": ["This object represents a Telegram user or bot."],
            "fields": [
                field("id", ["Integer"]),
                field("is_bot", ["Boolean"]),
                field(
                    "username",
                    ["String"],
                    required=False,
                    description="Optional. User's or bot's username",
                ),
            ],
        },
        "Chat": {
            "name": "Chat",
            "description": ["This object represents a chat."],
            "fields": [
                field("id", ["Integer"]),
                field("type", ["String"]),
                field("title", ["String"], required=False),
            ],
        },
        "Message": {
            "name": "Message",
            "description": ["This object represents a message."],
            "fields": [
                field("message_id", ["Integer"]),
                field("from", ["User"], required=False),
                field("chat", ["Chat"]),
                field("date", ["Integer"]),
                field("text", ["String"], required=False),
                field("reply_to_message", ["Message"], required=False),
                field("photo", ["Array of PhotoSize"], required=False),
                field("origin", ["MessageOrigin"], required=False),
                field(
                    "reply_markup", ["InlineKeyboardMarkup"], required=False
                ),
            ],
        },
        "PhotoSize": {
            "name": "PhotoSize",
            "description": ["One size of a photo."],
            "fields": [
                field("file_id", ["String"]),
                field("width", ["Integer"]),
                field("height", ["Integer"]),
            ],
        },
        "MessageOrigin": {
            "name": "MessageOrigin",
            "description": ["This object describes the origin of a message."],
            "subtypes": ["MessageOriginUser", "MessageOriginHiddenUser"],
        },
        "MessageOriginUser": {
            "name": "MessageOriginUser",
            "description": ["The message was originally sent by a user."],
            "fields": [
                field("type", ["String"]),
                field("date", ["Integer"]),
                field("sender_user", ["User"]),
            ],
            "subtype_of": ["MessageOrigin"],
        },
        "MessageOriginHiddenUser": {
            "name": "MessageOriginHiddenUser",
            "description": ["The message was sent by an unknown user."],
            "fields": [
                field("type", ["String"]),
                field("date", ["Integer"]),
                field("sender_user_name", ["String"]),
            ],
            "subtype_of": ["MessageOrigin"],
        },
        "InlineKeyboardMarkup": {
            "name": "InlineKeyboardMarkup",
            "description": ["An inline keyboard."],
            "fields": [
                field(
                    "inline_keyboard", ["Array of Array of InlineKeyboardButton"]
                ),
            ],
        },
        "InlineKeyboardButton": {
            "name": "InlineKeyboardButton",
            "description": ["One button of an inline keyboard."],
            "fields": [
                field("text", ["String"]),
                field("url", ["String"], required=False),
                field("callback_data", ["String"], required=False),
            ],
        },
        "ReplyKeyboardRemove": {
            "name": "ReplyKeyboardRemove",
            "description": ["Removes the current custom keyboard."],
            "fields": [
                field("remove_keyboard", ["True"]),
                field("selective", ["Boolean"], required=False),
            ],
        },
        "InputMediaPhoto": {
            "name": "InputMediaPhoto",
            "description": ["Represents a photo to be sent."],
            "fields": [
                field("type", ["String"]),
                field("media", ["InputFile", "String"]),
                field("caption", ["String"], required=False),
            ],
        },
        "ShapeA": {
            "name": "ShapeA",
            "description": ["First of two overlapping shapes."],
            "fields": [field("id", ["Integer"])],
        },
        "ShapeB": {
            "name": "ShapeB",
            "description": ["Second of two overlapping shapes."],
            "fields": [
                field("id", ["Integer"]),
                field("name", ["String"], required=False),
            ],
        },
    },
    "methods": {
        "getMe": {
            "name": "getMe",
            "description": ["Returns basic information about the bot."],
            "returns": ["User"],
        },
        "getUpdates": {
            "name": "getUpdates",
            "fields": [field("offset", ["Integer"], required=False)],
            "returns": ["Array of Update"],
        },
        "sendMessage": {
            "name": "sendMessage",
            "description": ["Use this method to send text messages."],
            "fields": [
                field("chat_id", ["Integer", "String"]),
                field("text", ["String"]),
                field(
                    "reply_markup",
                    ["InlineKeyboardMarkup", "ReplyKeyboardRemove"],
                    required=False,
                ),
            ],
            "returns": ["Message"],
        },
        "sendPhoto": {
            "name": "sendPhoto",
            "fields": [
                field("chat_id", ["Integer"]),
                field("photo", ["InputFile"]),
                field("caption", ["String"], required=False),
            ],
            "returns": ["Message"],
        },
        "sendMediaGroup": {
            "name": "sendMediaGroup",
            "fields": [
                field("chat_id", ["Integer"]),
                field("media", ["Array of InputMediaPhoto"]),
            ],
            "returns": ["Array of Message"],
        },
        "editMessageText": {
            "name": "editMessageText",
            "fields": [
                field("chat_id", ["Integer"], required=False),
                field("text", ["String"]),
            ],
            "returns": ["Message", "True"],
        },
        "getShape": {
            "name": "getShape",
            "returns": ["ShapeA", "ShapeB"],
        },
    },
}


@pytest.fixture
def schema_data():
    return copy.deepcopy(SCHEMA)


@pytest.fixture
def store(schema_data):
    return SchemaModel.model_validate(schema_data)


@pytest.fixture
def graph(store):
    return resolve(store)


@pytest.fixture
def bindings(graph):
    return generate(graph)


@pytest.fixture
def message_payload():
    return {
        "message_id": 10,
        "from": {"id": 1, "is_bot": False, "username": "alice"},
        "chat": {"id": -100, "type": "supergroup", "title": "Chat"},
        "date": 1700000000,
        "text": "hello",
        "reply_to_message": {
            "message_id": 9,
            "chat": {"id": -100, "type": "supergroup"},
            "date": 1699999999,
        },
        "photo": [
            {"file_id": "a", "width": 90, "height": 90},
            {"file_id": "b", "width": 320, "height": 320},
        ],
        "reply_markup": {
            "inline_keyboard": [[{"text": "Open", "url": "https://t.me"}]]
        },
    }

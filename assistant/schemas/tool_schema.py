# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Tool schemas: OpenAI function calling format.

Each schema defines a tool the LLM can invoke. TOOL_SCHEMA_MAP maps
tool names to their schemas; ALL_TOOL_SCHEMAS is what the tool-call loop
binds on every round-trip.
"""

_GUILD_CHANNEL_PROPERTIES = {
    "gid": {
        "type": "string",
        "description": "The guild (server) ID the voice channel belongs to",
    },
    "cid": {
        "type": "string",
        "description": "The voice channel ID whose song queue is addressed",
    },
}


def _music_schema(name: str, description: str, extra_properties=None, extra_required=None):
    properties = dict(_GUILD_CHANNEL_PROPERTIES)
    properties.update(extra_properties or {})
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": list(extra_required or []) + ["gid", "cid"],
            },
        },
    }


# ---------------------------------------------------------------------------
# Reminder family
# ---------------------------------------------------------------------------

CREATE_REMINDER_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "create_reminder",
        "description": "Schedule a reminder that will be posted to a text channel at the given time, mentioning the user.",
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Short title of the reminder"},
                "description": {"type": "string", "description": "What the user should be reminded about"},
                "time": {
                    "type": "string",
                    "description": "When to send the reminder, in YYYY-MM-DDTHH:MM:SS format (local time). Must be in the future.",
                },
                "user_id": {"type": "string", "description": "ID of the user to mention"},
                "channel_id": {"type": "string", "description": "ID of the text channel to post the reminder in"},
            },
            "required": ["title", "time", "user_id", "channel_id"],
        },
    },
}

LIST_REMINDERS_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "list_reminders",
        "description": "List every pending reminder with its UUID, title, description and time.",
        "parameters": {"type": "object", "properties": {}},
    },
}

DELETE_REMINDER_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "delete_reminder",
        "description": "Cancel a pending reminder by its UUID.",
        "parameters": {
            "type": "object",
            "properties": {
                "uuid": {"type": "string", "description": "UUID of the reminder to cancel"},
            },
            "required": ["uuid"],
        },
    },
}

# ---------------------------------------------------------------------------
# Music family
# ---------------------------------------------------------------------------

GET_CURRENT_SONG_LIST_TOOL_SCHEMA = _music_schema(
    "get_current_songList",
    "Get the song queue of a voice channel. The first song is the one currently playing or next to play.",
)

ADD_SONG_TOOL_SCHEMA = _music_schema(
    "add_song",
    "Append a song to the end of a voice channel's song queue.",
    extra_properties={
        "title": {"type": "string", "description": "Title of the song"},
        "url": {"type": "string", "description": "URL of the song (e.g. a YouTube video URL)"},
    },
    extra_required=["title", "url"],
)

REMOVE_SONG_TOOL_SCHEMA = _music_schema(
    "remove_song",
    "Remove a song from a voice channel's song queue by its UUID. The song currently playing cannot be removed.",
    extra_properties={
        "uuid": {"type": "string", "description": "UUID of the song, as returned by add_song or get_current_songList"},
    },
    extra_required=["uuid"],
)

PLAY_SONG_TOOL_SCHEMA = _music_schema(
    "play_song",
    "Start playing the first song of the queue in the voice channel.",
)

PAUSE_SONG_TOOL_SCHEMA = _music_schema(
    "pause_song",
    "Pause the song that is currently playing in the voice channel.",
)

STOP_SONG_TOOL_SCHEMA = _music_schema(
    "stop_song",
    "Stop playback in the voice channel. The queue is kept.",
)

SKIP_SONG_TOOL_SCHEMA = _music_schema(
    "skip_song",
    "Skip the current song and start playing the next one in the queue.",
)

# ---------------------------------------------------------------------------
# Voice family
# ---------------------------------------------------------------------------

FIND_VOICE_CHANNEL_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "find_voice_channel",
        "description": "Find the voice channel a user is currently connected to. Use it to get the cid for music tools.",
        "parameters": {
            "type": "object",
            "properties": {
                "gid": {"type": "string", "description": "The guild (server) ID"},
                "userid": {"type": "string", "description": "ID of the user to look up"},
            },
            "required": ["gid", "userid"],
        },
    },
}

# ---------------------------------------------------------------------------
# Generic family
# ---------------------------------------------------------------------------

GET_CURRENT_TIME_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "get_current_time",
        "description": "Get the current time in the user's location",
        "parameters": {"type": "object", "properties": {}},
    },
}

GET_CURRENT_DATE_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "get_current_date",
        "description": "Get the current date in the user's location",
        "parameters": {"type": "object", "properties": {}},
    },
}

GET_NEWS_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "get_news",
        "description": "Get the latest news headlines",
        "parameters": {"type": "object", "properties": {}},
    },
}

SEARCH_NEWS_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "search_news",
        "description": "Search for specific news articles",
        "parameters": {
            "type": "object",
            "properties": {
                "keywords": {"type": "string", "description": "Keywords to search for in the news articles"},
                "endDate": {
                    "type": "string",
                    "format": "date-time",
                    "description": "The end date for the news search in RFC 3339 format",
                },
                "newsType": {
                    "type": "string",
                    "enum": ["1", "2", "3"],
                    "description": "The type of news to search for. 1 (news), 2 (articles), 3 (discussion content)",
                },
                "country": {
                    "type": "string",
                    "description": "The country code for the news search, in uppercase (e.g., 'US' for United States)",
                },
                "category": {
                    "type": "string",
                    "description": "The category of news to search for (e.g., 'technology', 'sports')",
                },
                "domain": {"type": "string", "description": "The domain to search for news articles (e.g., 'example.com')"},
                "domainsNot": {"type": "string", "description": "Domains to exclude from the search (comma-separated)"},
                "pageNumber": {"type": "integer", "description": "The page number for pagination"},
                "pageSize": {"type": "integer", "description": "The number of articles to return per page, up to 20"},
                "limit": {"type": "integer", "description": "The maximum number of articles to return, up to 20"},
            },
        },
    },
}

SEARCH_VIDEO_TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "search_video",
        "description": "Search YouTube for videos matching a keyword. Returns up to 5 results with their video IDs.",
        "parameters": {
            "type": "object",
            "properties": {
                "keyword": {"type": "string", "description": "Search query"},
            },
            "required": ["keyword"],
        },
    },
}

ALL_TOOL_SCHEMAS = [
    CREATE_REMINDER_TOOL_SCHEMA,
    LIST_REMINDERS_TOOL_SCHEMA,
    DELETE_REMINDER_TOOL_SCHEMA,
    GET_CURRENT_SONG_LIST_TOOL_SCHEMA,
    ADD_SONG_TOOL_SCHEMA,
    REMOVE_SONG_TOOL_SCHEMA,
    PLAY_SONG_TOOL_SCHEMA,
    PAUSE_SONG_TOOL_SCHEMA,
    STOP_SONG_TOOL_SCHEMA,
    SKIP_SONG_TOOL_SCHEMA,
    FIND_VOICE_CHANNEL_TOOL_SCHEMA,
    GET_CURRENT_TIME_TOOL_SCHEMA,
    GET_CURRENT_DATE_TOOL_SCHEMA,
    GET_NEWS_TOOL_SCHEMA,
    SEARCH_NEWS_TOOL_SCHEMA,
    SEARCH_VIDEO_TOOL_SCHEMA,
]

TOOL_SCHEMA_MAP = {schema["function"]["name"]: schema for schema in ALL_TOOL_SCHEMAS}

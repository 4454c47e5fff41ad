ROOM_CONVERSATIONS_KEY = "room:{room_id}:conversations" # room id - legacy JSON array of conversation ids
ROOM_MEMBER_KEY = "room:{room_id}:conv:{conversation_id}" # one key per conversation in the room
ROOM_MEMBER_PREFIX = "room:{room_id}:conv:"
ROOM_SEAT_KEY = "room:{room_id}:seat:{faction}" # claimed seat marker
CONV_META_KEY = "conv:{conversation_id}:meta" # {room_id, participants}
CONV_MSG_KEY = "conv:{conversation_id}:msg:{timestamp:020d}:{message_id}" # zero padded so key order == time order
CONV_MSG_PREFIX = "conv:{conversation_id}:msg:"

# **Example `conv:{id}:meta` value**
# {"room_id": "spring-1901", "participants": ["england", "france"]}

# **Example `room:{room_id}:conv:{id}` value**
# {"conversation_id": "3f2a9c1b0e4d5a67", "created_at": 1717171717171}

# **Example `conv:{id}:msg:...` key**
# conv:3f2a9c1b0e4d5a67:msg:00000001717171717171:5b0c2e8e-...

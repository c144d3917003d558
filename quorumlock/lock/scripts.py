"""
Lua scripts untuk atomic per-node operations.

Setiap script dieksekusi sebagai satu step di server Redis, jadi
tidak ada race window antara compare dan mutate.
KEYS[1] = resource, ARGV[1] = token.
"""

# ARGV[2] = ttl (ms), string kosong untuk lock permanent
ACQUIRE_SCRIPT = """
local result
if ARGV[2] ~= nil and ARGV[2] ~= "" then
    result = redis.call("SET", KEYS[1], ARGV[1], "NX", "PX", ARGV[2])
else
    result = redis.call("SET", KEYS[1], ARGV[1], "NX")
end
if result then
    return 1
end
return 0
"""

RELEASE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""

# ARGV[2] = ttl baru (ms)
RENEW_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("PEXPIRE", KEYS[1], ARGV[2])
end
return 0
"""

STATUS_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return "ACQUIRED"
elseif redis.call("EXISTS", KEYS[1]) == 1 then
    return "LOCKED"
end
return "AVAILABLE"
"""

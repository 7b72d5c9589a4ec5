"""
X API v2 endpoint definitions.

Documentation: https://docs.x.com/x-api/introduction
"""

# Posts
TWEETS = "/2/tweets"

# Users
USERS_ME = "/2/users/me"

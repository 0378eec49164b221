"""
constants.py: Centralized configuration for game, storage and network settings.
"""

# -------- Network & Server Config --------
LEADERBOARD_HOST = "127.0.0.1"
LEADERBOARD_PORT = 50017
BUFFER_SIZE = 65536
REQUEST_TIMEOUT = 2.0           # seconds per attempt

# Retry policy (fixed delay, no backoff)
MAX_RETRIES = 3                 # Additional attempts after the first
RETRY_DELAY = 1.0               # seconds between attempts
LEADERBOARD_LIMIT = 10
MAX_LOCAL_RECORDS = 100

# -------- Local Storage Config --------
LOCAL_DB_FILE = "runner_local.db"
SERVER_DB_FILE = "runner_server.db"
SCORES_KEY = "runner-scores"
HIGHSCORE_KEY = "runner-highscore"

# -------- Player Name Rules --------
MAX_NAME_LENGTH = 20
NAME_PATTERN = r"^[a-zA-Z0-9\s_-]+$"

# -------- Game World Config --------
SCREEN_WIDTH = 800
SCREEN_HEIGHT = 400
GROUND_HEIGHT = 50
RENDER_FPS = 60

# -------- Player Config --------
PLAYER_X = 100                  # Fixed actor X position
PLAYER_WIDTH = 40
PLAYER_HEIGHT = 40

# -------- Physics Config (units / tick) --------
GRAVITY = 0.6
JUMP_IMPULSE = -12.0

# -------- Obstacle Config --------
OBSTACLE_WIDTH = 20
OBSTACLE_MIN_HEIGHT = 30
OBSTACLE_MAX_HEIGHT = 80
OBSTACLE_HEIGHT_STEP = 10       # Extra max height per level
OBSTACLE_SPACING = 300
OBSTACLE_SPACING_STEP = 20      # Spacing reduction per level
OBSTACLE_MAX_SPACING_REDUCTION = 150
OBSTACLE_MIN_SPACING = 200
BASE_SPEED = 4.0
SPEED_INCREMENT = 0.5           # Added every two levels

# -------- Scoring Config --------
SCORE_INCREMENT = 1             # Distance score per tick
PASS_BONUS = 10                 # Once per obstacle cleared
LEVEL_THRESHOLD = 500

# -------- Particle Config --------
PARTICLE_BURST = 8
PARTICLE_SPREAD = 8.0
PARTICLE_GRAVITY = 0.2
PARTICLE_DECAY = 0.001          # Life lost per millisecond
SCORE_COLOR = (81, 207, 102)
LEVEL_UP_COLOR = (255, 212, 59)
CRASH_COLOR = (252, 231, 50)

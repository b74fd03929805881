JOIN_CHANNEL = "⛔ To use this bot, you must first join {channel}."

WELCOME = "👋 Hi! Send me a file (up to {limit_mb}MB), and I will generate a direct download link for you."

INVALID_FILE = "❗ Please send a valid file."

FILE_TOO_LARGE = "❌ Sorry, bots cannot process files larger than {limit_mb}MB."

LINK_READY = (
    "✅ Your download link is ready:\n"
    "`{link}`\n\n"
    "⚠️ This is a direct link from Telegram and may expire after a while."
)

NO_LINKS = "ℹ️ You have no active links."

LINKS_HEADER = "🔗 Your active links:\n\n"

LINK_LINE = "• {name} ({size_mb:.2f} MB)\n`{link}`\n\n"

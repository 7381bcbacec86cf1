"""
Configuration and constants for PraxisNotes session reports
"""
import os

# --- PATHS ---
REPORTS_DB = os.getenv("REPORTS_DB", "reports_database.json")
CLIENTS_DB = os.getenv("CLIENTS_DB", "clients_database.json")
DEFAULT_OUTPUT_PATH = os.getenv("REPORT_OUTPUT_PATH", "generated_reports/")
LOG_DIR = os.getenv("LOG_DIR", "./logs")

# --- GENERATION ---
# Seconds to wait for the next streamed chunk before giving up
GENERATION_TIMEOUT = float(os.getenv("GENERATION_TIMEOUT", "120"))
DEFAULT_RBT_NAME = os.getenv("DEFAULT_RBT_NAME", "RBT")
REPORT_TEMPERATURE = float(os.getenv("REPORT_TEMPERATURE", "0.7"))
MAX_REPORT_TOKENS = int(os.getenv("MAX_REPORT_TOKENS", "2048"))

# Check if running on Hugging Face
IS_HUGGINGFACE = os.getenv("SPACE_ID") is not None or os.getenv("SPACE_AUTHOR_NAME") is not None

# Conditional model availability
if IS_HUGGINGFACE:
    # Only hosted models on cloud
    FREE_MODELS = []
    PREMIUM_MODELS = ["Claude 3.5 Sonnet", "GPT-4o", "Gemini 2.5 Pro", "Claude 3 Opus"]
    DEFAULT_MODEL = "Claude 3.5 Sonnet"
else:
    FREE_MODELS = ["Llama3.2", "Qwen 2.5 7B"]
    PREMIUM_MODELS = ["Claude 3.5 Sonnet", "GPT-4o", "Gemini 2.5 Pro", "Claude 3 Opus"]
    DEFAULT_MODEL = "Llama3.2"

ALL_MODELS = FREE_MODELS + PREMIUM_MODELS

MODEL_MAP = {
    "Llama3.2": "llama3.2:latest",
    "Qwen 2.5 7B": "qwen2.5:7b",
    "GPT-4o": "gpt-4o",
    "Gemini 2.5 Pro": "gemini-2.5-pro",
    "Claude 3 Opus": "claude-3-opus-20240229",
    "Claude 3.5 Sonnet": "claude-3-5-sonnet-20240620"
}

# --- FORM OPTIONS ---
# Stored value -> label shown to users and written into prompts
LOCATION_LABELS = {
    "home": "Home",
    "school": "School",
    "clinic": "Clinic",
    "community": "Community Setting",
    "telehealth": "Telehealth",
}

PROMPT_LEVEL_LABELS = {
    "independent": "Independent",
    "gestural": "Gestural Prompt",
    "verbal": "Verbal Prompt",
    "model": "Model Prompt",
    "partial": "Partial Physical Prompt",
    "full": "Full Physical Prompt",
}

INTENSITY_LABELS = {
    "mild": "Mild",
    "moderate": "Moderate",
    "severe": "Severe",
}

REINFORCER_TYPE_LABELS = {
    "primary": "Primary",
    "secondary": "Secondary",
    "social": "Social",
    "activity": "Activity-based",
}

EFFECTIVENESS_LABELS = {
    1: "Not effective",
    2: "Slightly effective",
    3: "Moderately effective",
    4: "Very effective",
    5: "Extremely effective",
}

PROMPT_TYPE_LABELS = {
    "verbal": "Verbal",
    "gestural": "Gestural",
    "model": "Model",
    "physical": "Physical",
    "visual": "Visual",
    "positional": "Positional",
    "other": "Other",
}

DEFAULT_EFFECTIVENESS = 3

# --- REPORT SECTIONS ---
# Order matters: it is the order the generation service is asked to follow
REPORT_SECTIONS = [
    ("summary", "Summary"),
    ("skill_acquisition", "Skill Acquisition"),
    ("behavior_management", "Behavior Management"),
    ("reinforcement", "Reinforcement"),
    ("observations", "Observations"),
    ("recommendations", "Recommendations"),
    ("next_steps", "Next Steps"),
]

SECTION_PLACEHOLDERS = {
    "summary": "No summary provided.",
    "skill_acquisition": "No skill acquisition data provided.",
    "behavior_management": "No behavior management data provided.",
    "reinforcement": "No reinforcement data provided.",
    "observations": "No observations provided.",
    "recommendations": "No recommendations provided.",
    "next_steps": "No next steps provided.",
}

# --- SAMPLE CLIENTS ---
# Used when no client directory file exists
DEFAULT_CLIENTS = [
    {
        "id": "c1",
        "first_name": "Alex",
        "last_name": "Johnson",
        "date_of_birth": "2016-05-12",
        "diagnosis": "Autism Spectrum Disorder",
        "guardian_name": "Maria Johnson",
        "provider": "Sunshine Behavioral Health",
    },
    {
        "id": "c2",
        "first_name": "Sam",
        "last_name": "Thompson",
        "date_of_birth": "2017-09-23",
        "diagnosis": "ADHD",
        "guardian_name": "Robert Thompson",
        "provider": "Sunshine Behavioral Health",
    },
    {
        "id": "c3",
        "first_name": "Jordan",
        "last_name": "Lee",
        "date_of_birth": "2018-02-14",
        "diagnosis": "Developmental Delay",
        "guardian_name": "Jennifer Lee",
        "provider": "Sunshine Behavioral Health",
    },
    {
        "id": "c4",
        "first_name": "Brandon",
        "last_name": "Morris",
        "date_of_birth": "2015-11-30",
        "diagnosis": "Autism Spectrum Disorder, Level 2",
        "guardian_name": "Vanessa Morris",
        "provider": "Sunshine Behavioral Health",
    },
]

# --- PREDEFINED CATALOGS ---
# Offered as picks in the wizard tables and served by the catalog endpoints
SKILL_PROGRAMS = [
    {"id": "prog-1", "name": "Communication",
     "description": "Focuses on developing verbal and non-verbal communication skills"},
    {"id": "prog-2", "name": "Social Skills",
     "description": "Aims to improve social interactions and relationship building"},
    {"id": "prog-3", "name": "Self-Help",
     "description": "Teaches daily living and self-care skills for independence"},
    {"id": "prog-4", "name": "Academic Skills",
     "description": "Focuses on educational and learning objectives"},
    {"id": "prog-5", "name": "Play Skills",
     "description": "Develops appropriate play behaviors and engagement"},
]

SKILL_TARGETS = [
    {"id": "target-1", "program_id": "prog-1", "name": "Requesting items",
     "description": "Using words/gestures to request desired items"},
    {"id": "target-2", "program_id": "prog-1", "name": "Responding to questions",
     "description": "Appropriate responses to questions like 'what's your name?'"},
    {"id": "target-3", "program_id": "prog-1", "name": "Following instructions",
     "description": "Completing 1-2 step verbal instructions"},
    {"id": "target-4", "program_id": "prog-2", "name": "Turn taking",
     "description": "Waiting for turn during activities and conversations"},
    {"id": "target-5", "program_id": "prog-2", "name": "Greeting others",
     "description": "Appropriately greeting familiar people and responding to greetings"},
    {"id": "target-6", "program_id": "prog-2", "name": "Sharing",
     "description": "Sharing toys and materials with peers"},
    {"id": "target-7", "program_id": "prog-3", "name": "Hand washing",
     "description": "Proper hand washing technique and sequence"},
    {"id": "target-8", "program_id": "prog-3", "name": "Getting dressed",
     "description": "Putting on and removing clothing items independently"},
    {"id": "target-9", "program_id": "prog-3", "name": "Toileting",
     "description": "Independent toileting routine and hygiene"},
    {"id": "target-10", "program_id": "prog-4", "name": "Identifying letters",
     "description": "Recognizing and naming alphabet letters"},
    {"id": "target-11", "program_id": "prog-4", "name": "Counting objects",
     "description": "One-to-one correspondence counting of objects"},
    {"id": "target-12", "program_id": "prog-4", "name": "Writing name",
     "description": "Writing first name independently"},
    {"id": "target-13", "program_id": "prog-5", "name": "Cooperative play",
     "description": "Engaging in interactive play with peers"},
    {"id": "target-14", "program_id": "prog-5", "name": "Pretend play",
     "description": "Using imagination during play activities"},
    {"id": "target-15", "program_id": "prog-5", "name": "Following game rules",
     "description": "Understanding and following basic game rules"},
]

BEHAVIOR_CATALOG = [
    {"id": "behavior-1", "name": "Aggression", "category": "Challenging",
     "definition": "Physical actions directed at others that may cause harm, including hitting, "
                   "kicking, biting, or pushing"},
    {"id": "behavior-2", "name": "Self-injury", "category": "Challenging",
     "definition": "Actions directed toward self that may cause harm, such as head banging, "
                   "biting self, or hitting self"},
    {"id": "behavior-3", "name": "Property destruction", "category": "Challenging",
     "definition": "Behaviors that damage or destroy objects in the environment, such as throwing "
                   "items, breaking objects, or tearing materials"},
    {"id": "behavior-4", "name": "Elopement", "category": "Safety",
     "definition": "Leaving a designated area without permission or supervision"},
    {"id": "behavior-5", "name": "Non-compliance", "category": "Instructional",
     "definition": "Refusing to follow instructions or complete requests within a reasonable time frame"},
    {"id": "behavior-6", "name": "Tantrum", "category": "Emotional",
     "definition": "Combination of crying, screaming, falling to the floor, and other emotional "
                   "expressions that persist for a period of time"},
    {"id": "behavior-7", "name": "Verbal disruption", "category": "Disruptive",
     "definition": "Inappropriate vocalizations including yelling, screaming, or using inappropriate "
                   "language that disrupts the environment"},
    {"id": "behavior-8", "name": "Stereotypy", "category": "Repetitive",
     "definition": "Repetitive movements or vocalizations that serve no apparent function in the "
                   "current context"},
    {"id": "behavior-9", "name": "Food refusal", "category": "Eating",
     "definition": "Consistently refusing to eat foods or entire food groups, pushing away food, or "
                   "engaging in disruptive behaviors during mealtimes"},
    {"id": "behavior-10", "name": "Attention-seeking", "category": "Social",
     "definition": "Behaviors that appear to be maintained by gaining attention from others, including "
                   "both appropriate and inappropriate means of seeking attention"},
]

REINFORCER_CATALOG = [
    {"id": "reinforcer-1", "name": "Praise", "type": "social", "category": "Social",
     "description": "Verbal expressions of approval for appropriate behaviors"},
    {"id": "reinforcer-2", "name": "High-five", "type": "social", "category": "Social",
     "description": "Physical gesture of approval"},
    {"id": "reinforcer-3", "name": "Token economy", "type": "secondary", "category": "System",
     "description": "System where tokens are earned for desired behaviors and exchanged for "
                    "preferred items or activities"},
    {"id": "reinforcer-4", "name": "Stickers", "type": "secondary", "category": "Tangible",
     "description": "Small adhesive decorations provided for completing tasks"},
    {"id": "reinforcer-5", "name": "Break time", "type": "activity", "category": "Activity",
     "description": "Short period away from demands or work"},
    {"id": "reinforcer-6", "name": "Tablet time", "type": "activity", "category": "Activity",
     "description": "Time allowed on electronic device"},
    {"id": "reinforcer-7", "name": "Edible treat", "type": "primary", "category": "Edible",
     "description": "Food items provided contingent on behavior"},
    {"id": "reinforcer-8", "name": "Favorite game", "type": "activity", "category": "Activity",
     "description": "Opportunity to play a preferred game"},
    {"id": "reinforcer-9", "name": "Choice making", "type": "activity", "category": "Control",
     "description": "Opportunity to make choices about activities or materials"},
    {"id": "reinforcer-10", "name": "Time with preferred toy", "type": "activity", "category": "Tangible",
     "description": "Access to a favorite toy or item"},
]

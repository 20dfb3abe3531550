"""Constants for search filters, facets and job classification."""

# Location modes
LOCATION_REMOTE_ONLY = "Remote Only"
LOCATION_ONSITE_ONLY = "On-site Only"
LOCATION_INCLUDE_REMOTE = "Include Remote"

VALID_LOCATION_MODES = [
    LOCATION_REMOTE_ONLY,
    LOCATION_ONSITE_ONLY,
    LOCATION_INCLUDE_REMOTE,
]

# Sort modes
SORT_RELEVANCE = "Relevance"
SORT_DATE_POSTED = "Date Posted"
SORT_COMPANY = "Company"

VALID_SORT_MODES = [
    SORT_RELEVANCE,
    SORT_DATE_POSTED,
    SORT_COMPANY,
]

# Remote status values on a Job
REMOTE_STATUS_REMOTE = "remote"
REMOTE_STATUS_ONSITE = "onsite"
REMOTE_STATUS_HYBRID = "hybrid"

# Facet label -> extra search terms appended to the upstream query
FACET_SEARCH_TERMS = {
    "Fall 2025 Internship": "fall 2025 internship",
    "Spring 2026 Internship": "spring 2026 internship",
    "Summer 2026 Internship": "summer 2026 internship",
    "Entry-Level / New-Grad Full-Time": "entry level new grad",
}

# Keywords that mark a job as remote-friendly
REMOTE_KEYWORDS = ["remote", "work from home", "wfh", "telecommute", "virtual", "hybrid"]

DEFAULT_TAG = "General Tech"
MAX_TAGS = 3

# Category -> keywords, matched as case-insensitive substrings in dictionary order
TAG_CATEGORIES = {
    "Computer Vision": [
        "computer vision", "cv", "image processing", "opencv", "image recognition",
        "object detection", "facial recognition", "medical imaging", "autonomous",
        "lidar", "camera", "visual", "perception",
    ],
    "Natural Language Processing": [
        "nlp", "natural language", "language model", "text processing", "chatbot",
        "sentiment analysis", "speech recognition", "translation", "linguistics",
        "transformer", "bert", "gpt", "llm",
    ],
    "Generative AI": [
        "generative ai", "genai", "gpt", "llm", "large language model", "diffusion",
        "stable diffusion", "dall-e", "midjourney", "text generation", "ai art",
        "prompt engineering", "fine-tuning", "rag", "retrieval augmented",
    ],
    "Machine Learning": [
        "machine learning", "ml", "deep learning", "neural network", "tensorflow",
        "pytorch", "scikit-learn", "keras", "model training", "feature engineering",
        "regression", "classification", "clustering", "supervised", "unsupervised",
    ],
    "Data Science": [
        "data science", "data scientist", "data analysis", "statistics", "pandas",
        "numpy", "jupyter", "visualization", "tableau", "power bi", "sql", "database",
        "etl", "data pipeline", "analytics",
    ],
    "Software Engineering": [
        "software engineer", "software developer", "backend", "frontend", "full stack",
        "microservices", "api design", "rest", "graphql", "design patterns", "oop",
        "typescript", "react", "java", "c++", "go",
    ],
}

# Upstream rate-limit classifications
RATE_LIMITED = "RATE_LIMITED"
MONTHLY_QUOTA_EXCEEDED = "MONTHLY_QUOTA_EXCEEDED"

# Posting date placeholders
POSTING_DATE_UNAVAILABLE = "Not available"
LOCATION_UNSPECIFIED = "Not specified"

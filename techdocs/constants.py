"""Default decision tables used when the configuration does not override them."""

from __future__ import annotations

from typing import Dict, List

DEFAULT_INCLUDE_PATTERNS: List[str] = ["**/*"]

DEFAULT_EXCLUDE_PATTERNS: List[str] = [
    ".git/",
    ".hg/",
    ".svn/",
    "node_modules/",
    "__pycache__/",
    ".venv/",
    "venv/",
    ".mypy_cache/",
    ".pytest_cache/",
    ".next/",
    ".nuxt/",
    "dist/",
    "build/",
    "coverage/",
    "vendor/",
    "*.min.js",
    "*.min.css",
    "*.map",
    "*.lock",
    "package-lock.json",
    "pnpm-lock.yaml",
    ".DS_Store",
]

DEFAULT_MAX_FILE_SIZE = "1MB"
DEFAULT_TIMEOUT_SECONDS = 300.0

DEFAULT_MAX_EXAMPLES_PER_DOMAIN = 3
DEFAULT_MIN_EXAMPLE_LINES = 5
DEFAULT_MAX_EXAMPLE_LINES = 50

DEFAULT_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_REQUIRED_SECTIONS: List[str] = [
    "Overview",
    "Architecture",
    "Implementation",
    "Code Examples",
]

DEFAULT_WEIGHTS: Dict[str, float] = {
    "patterns": 0.4,
    "examples": 0.4,
    "configuration": 0.2,
}

# domain -> {filePatterns, functionPatterns, importPatterns}
DEFAULT_DOMAIN_RULES: Dict[str, Dict[str, List[str]]] = {
    "authentication": {
        "filePatterns": [
            "**/auth/**",
            "**/*{auth,Auth}*",
            "**/*{login,Login,session,Session}*",
            "**/middleware.{ts,js}",
        ],
        "functionPatterns": [
            r"\b(signIn|signOut|signUp|login|logout|authenticate|getSession|verifyToken|requireAuth|useAuth|getUser|getServerSession)\b",
            r"def\s+(login|logout|authenticate|get_current_user|verify_token)\b",
        ],
        "importPatterns": [
            r"supabase|next-auth|@auth/|@clerk/|passport|jsonwebtoken|\bjose\b|firebase/auth|auth0",
            r"flask_login|django\.contrib\.auth|fastapi\.security|\bjwt\b",
        ],
    },
    "components": {
        "filePatterns": [
            "**/components/**",
            "**/ui/**",
            "**/*.{jsx,tsx,vue,svelte}",
        ],
        "functionPatterns": [
            r"export\s+(default\s+)?function\s+[A-Z]\w*\s*\(",
            r"(const|let)\s+[A-Z]\w*\s*(:\s*[\w.<>]+\s*)?=\s*(\([^)]*\)|\w+)\s*=>",
            r"defineComponent\s*\(|@Component\s*\(",
        ],
        "importPatterns": [
            r"['\"](react|react-dom|vue|svelte|@angular/core|solid-js|preact)['\"/]",
        ],
    },
    "state": {
        "filePatterns": [
            "**/store/**",
            "**/stores/**",
            "**/state/**",
            "**/context/**",
            "**/contexts/**",
            "**/*{Store,store,Slice,slice,Context,context,Reducer,reducer}*.{js,jsx,ts,tsx}",
        ],
        "functionPatterns": [
            r"createSlice\s*\(|configureStore\s*\(|createStore\s*\(|combineReducers\s*\(",
            r"createContext\s*\(|useReducer\s*\(|defineStore\s*\(|makeAutoObservable\s*\(",
            r"\bcreate\s*(<[^>]*>)?\s*\(\s*\(?\s*set\b|\batom\s*\(",
        ],
        "importPatterns": [
            r"redux|zustand|mobx|recoil|jotai|pinia|vuex|@tanstack/react-query|react-query|\bswr\b|xstate",
        ],
    },
    "backgroundJobs": {
        "filePatterns": [
            "**/jobs/**",
            "**/workers/**",
            "**/worker/**",
            "**/queues/**",
            "**/queue/**",
            "**/tasks/**",
            "**/cron/**",
            "**/*{job,Job,worker,Worker,queue,Queue}*",
        ],
        "functionPatterns": [
            r"@(shared_task|app\.task|celery\.task|dramatiq\.actor)",
            r"new\s+(Queue|Worker|QueueScheduler)\s*\(|cron\.schedule\s*\(|schedule\.every",
            r"\.add\s*\(\s*['\"][\w-]+['\"]|\.enqueue\s*\(|def\s+\w*job\w*\s*\(",
        ],
        "importPatterns": [
            r"bullmq|\bbull\b|agenda|node-cron|inngest|@trigger\.dev",
            r"\bcelery\b|\brq\b|apscheduler|dramatiq|huey",
        ],
    },
    "fileStorage": {
        "filePatterns": [
            "**/storage/**",
            "**/uploads/**",
            "**/upload/**",
            "**/files/**",
            "**/*{storage,Storage,upload,Upload,s3,S3}*",
        ],
        "functionPatterns": [
            r"\.upload\s*\(|putObject|PutObjectCommand|getSignedUrl|createSignedUrl",
            r"\.storage\s*\.\s*from\s*\(|multer\s*\(|upload_file|generate_presigned_url",
        ],
        "importPatterns": [
            r"@aws-sdk/client-s3|aws-sdk|boto3|multer|cloudinary|@google-cloud/storage|firebase/storage|uploadthing|@vercel/blob",
        ],
    },
    "database": {
        "filePatterns": [
            "**/db/**",
            "**/database/**",
            "**/models/**",
            "**/migrations/**",
            "**/repositories/**",
            "**/prisma/**",
            "**/*{schema,Schema,model,Model,repository,Repository}*",
        ],
        "functionPatterns": [
            r"\b(findMany|findUnique|findFirst|findOne|createQueryBuilder|pgTable|sqliteTable)\s*\(",
            r"session\.(query|execute|add)\s*\(|objects\.(filter|get|create)\s*\(|Column\s*\(",
            r"class\s+\w+\s*\(((db\.)?Model|models\.Model|Base|SQLModel)",
        ],
        "importPatterns": [
            r"@prisma/client|drizzle-orm|typeorm|sequelize|mongoose|knex|['\"]pg['\"]",
            r"sqlalchemy|sqlmodel|django\.db|psycopg|pymongo|motor|peewee",
        ],
    },
    "errorHandling": {
        "filePatterns": [
            "**/errors/**",
            "**/error/**",
            "**/exceptions/**",
            "**/*{error,Error,exception,Exception}*",
            "**/middleware/**",
        ],
        "functionPatterns": [
            r"class\s+\w+(Error|Exception)\b|extends\s+Error\b",
            r"ErrorBoundary|componentDidCatch|exception_handler|errorHandler",
            r"\bcatch\s*\(|\bexcept\s+\w+",
        ],
        "importPatterns": [
            r"@sentry/|sentry_sdk|react-error-boundary|http-errors|@hapi/boom",
        ],
    },
    "testing": {
        "filePatterns": [
            "**/__tests__/**",
            "**/tests/**",
            "**/test/**",
            "**/*.{test,spec}.*",
            "**/test_*.py",
            "**/*_test.{py,go}",
        ],
        "functionPatterns": [
            r"\b(describe|it|test)\s*\(\s*['\"`]",
            r"def\s+test_\w+\s*\(|@pytest\.fixture",
            r"\bexpect\s*\(|func\s+Test\w+\s*\(",
        ],
        "importPatterns": [
            r"jest|vitest|@testing-library/|mocha|chai|cypress|@playwright/test|supertest",
            r"\bpytest\b|\bunittest\b",
        ],
    },
    "integration": {
        "filePatterns": [
            "**/api/**",
            "**/services/**",
            "**/integrations/**",
            "**/clients/**",
            "**/webhooks/**",
            "**/*{client,Client,api,Api,service,Service}*",
        ],
        "functionPatterns": [
            r"\bfetch\s*\(|\baxios\s*[.(]|httpx\.|requests\.(get|post|put|patch|delete)\s*\(",
            r"@(app|router)\.(get|post|put|patch|delete)\s*\(|\brouter\.(get|post|put|patch|delete)\s*\(",
            r"export\s+async\s+function\s+(GET|POST|PUT|PATCH|DELETE)\b|webhook",
        ],
        "importPatterns": [
            r"axios|stripe|openai|@anthropic-ai/|twilio|@sendgrid/|resend|graphql|@apollo/|\bky\b",
            r"\brequests\b|\bhttpx\b|aiohttp|grpc",
        ],
    },
    "deployment": {
        "filePatterns": [
            "**/Dockerfile",
            "**/docker-compose*.{yml,yaml}",
            "**/.github/workflows/**",
            "**/k8s/**",
            "**/deploy/**",
            "**/vercel.json",
            "**/netlify.toml",
            "**/fly.toml",
        ],
        "functionPatterns": [
            r"^\s*(FROM|RUN|CMD|ENTRYPOINT)\s",
            r"^\s*(runs-on|steps|services|image):",
            r"kind:\s*(Deployment|Service|Ingress)",
        ],
        "importPatterns": [],
    },
}

"""Regex-based tag extraction for session notes.

Tags are ranked by how often their rule matches the conversation text, in
the groups topic, tech, activity, then domain. At most MAX_TAGS are returned.
"""

import json
import re

from sessionsync.store.models import Conversation

MAX_TAGS = 15
DOMAIN_TEXT_THRESHOLD = 3
TOOL_OUTPUT_LIMIT = 500

_I = re.IGNORECASE

TOPIC_RULES = [
    (re.compile(r"\b(authenticat|auth[- ]?flow|login|signup|sign[- ]?up|oauth|jwt|bearer\s+token)\b", _I), "topic/authentication"),
    (re.compile(r"\b(database|sql\b|query|migration|schema|postgres|mysql|mongo|sqlite|table\b|column\b)\b", _I), "topic/database"),
    (re.compile(r"\b(test(s|ing)?|jest|vitest|pytest|\.spec\.|\.test\.|assert|expect\(|describe\(|it\()\b", _I), "topic/testing"),
    (re.compile(r"\b(deploy(ment|ing)?|ci[/-]cd|pipeline|github[- ]?actions|workflow|\.ya?ml\b)", _I), "topic/ci-cd"),
    (re.compile(r"\b(refactor(ing|ed)?|rename|extract\s+(method|function|class)|cleanup|restructur)", _I), "topic/refactoring"),
    (re.compile(r"\b(debug(g(er|ing))?|breakpoint|stack\s*trace|error|fix(ed|ing)?|bug(s|fix)?)\b", _I), "topic/debugging"),
    (re.compile(r"\b(api\b|endpoint|route(s|r)?|rest\b|graphql|grpc|http(s)?\b)", _I), "topic/api"),
    (re.compile(r"\b(performance|optimiz(e|ation)|cache|latenc|profil(e|ing)|benchmark)", _I), "topic/performance"),
    (re.compile(r"\b(security|vulnerabilit|xss|csrf|injection|sanitiz|encrypt|decrypt)", _I), "topic/security"),
    (re.compile(r"\b(ui\b|frontend|css\b|style(s|d|sheet)?|component(s)?|layout|responsive)\b", _I), "topic/ui"),
    (re.compile(r"\b(config(uration)?|setup|install(ation)?|init(ializ)?|scaffold|boilerplate)\b", _I), "topic/setup"),
    (re.compile(r"\b(docker|container(s|iz)?|kubernetes|k8s|helm)\b", _I), "topic/infrastructure"),
]

TECH_RULES = [
    (re.compile(r"\b(typescript|\.tsx?\b)", _I), "tech/typescript"),
    (re.compile(r"\b(javascript|\.jsx?\b)", _I), "tech/javascript"),
    (re.compile(r"\b(python|\.py\b|pip\b|pytest)\b", _I), "tech/python"),
    (re.compile(r"\b(react|jsx|useState|useEffect)\b", _I), "tech/react"),
    (re.compile(r"\b(next\.?js|next\.config|next[/-]app)\b", _I), "tech/nextjs"),
    (re.compile(r"\b(vue|\.vue\b|vuex|pinia)\b", _I), "tech/vue"),
    (re.compile(r"\b(node\.?js|nodejs|npm\b|yarn\b|pnpm\b)\b", _I), "tech/nodejs"),
    (re.compile(r"\b(bun\b|bunx|bun\.sh)\b", _I), "tech/bun"),
    (re.compile(r"\b(postgres(ql)?|pg_|psql)\b", _I), "tech/postgres"),
    (re.compile(r"\b(redis|ioredis)\b", _I), "tech/redis"),
    (re.compile(r"\b(docker(file)?|docker[- ]?compose)\b", _I), "tech/docker"),
    (re.compile(r"\b(aws|s3\b|lambda\b|ec2\b|dynamodb|cloudfront)\b", _I), "tech/aws"),
    (re.compile(r"\b(graphql|gql\b|apollo|urql)\b", _I), "tech/graphql"),
    (re.compile(r"\b(git(hub|lab|bucket)?\b)", _I), "tech/git"),
    (re.compile(r"\b(obsidian|dataview|wikilink)\b", _I), "tech/obsidian"),
    (re.compile(r"\b(tailwind(css)?)\b", _I), "tech/tailwind"),
    (re.compile(r"\b(prisma|drizzle|typeorm|sequelize)\b", _I), "tech/orm"),
    (re.compile(r"\b(openai|anthropic|claude|gpt[- ]?\d|llm|embeddings)\b", _I), "tech/ai"),
]

ACTIVITY_RULES = [
    (re.compile(r"\b(fix(ed|ing|es)?|bug(s|fix)?|issue|patch|hotfix|broken)\b", _I), "activity/bugfix"),
    (re.compile(r"\b(feature|implement(ed|ing)?|add(ed|ing)?|creat(e|ed|ing)|build(ing)?|new\s+(component|function|module|file|endpoint))\b", _I), "activity/feature"),
    (re.compile(r"\b(explor(e|ing|ation)|investigat(e|ing)|research|look\s+into|understand|how\s+does)\b", _I), "activity/exploration"),
    (re.compile(r"\b(review|feedback|pr\b|pull\s+request|code\s+review)\b", _I), "activity/review"),
    (re.compile(r"\b(setup|install|configur(e|ing|ation)|init(ializ)?\b|scaffold)\b", _I), "activity/setup"),
    (re.compile(r"\b(migrat(e|ion|ing)|upgrade|update\s+version)\b", _I), "activity/migration"),
]

DOMAIN_RULES = [
    (re.compile(r"\b(opencode|oh-my-opencode|ohmyopencode|opencode-ai|opencode\.ai)\b", _I), "domain/opencode"),
    (re.compile(r"\b(obsidian|dataview|wikilink|vault)\b", _I), "domain/obsidian"),
    (re.compile(r"\b(neovim|nvim|lazyvim|vim)\b", _I), "domain/neovim"),
    (re.compile(r"\b(kubernetes|k8s|kind-cluster|helm|kubectl)\b", _I), "domain/kubernetes"),
    (re.compile(r"\b(tailscale|homelab|glance)\b", _I), "domain/homelab"),
    (re.compile(r"\b(aws|amazon|cloudfront|s3|lambda|ec2|bedrock|dynamodb|sagemaker)\b", _I), "domain/aws"),
    (re.compile(r"\b(docker|dockerfile|docker-compose|container)\b", _I), "domain/docker"),
    (re.compile(r"\b(github|github-actions|gh-cli)\b", _I), "domain/github"),
    (re.compile(r"\b(terraform|pulumi|cloudformation)\b", _I), "domain/iac"),
    (re.compile(r"\b(postgres|postgresql|mysql|mongodb|sqlite|database|sql)\b", _I), "domain/database"),
    (re.compile(r"\b(react|nextjs|next\.js|remix|gatsby)\b", _I), "domain/react"),
    (re.compile(r"\b(python|django|flask|fastapi)\b", _I), "domain/python"),
    (re.compile(r"\b(typescript|javascript|nodejs|node\.js|bun|deno)\b", _I), "domain/javascript"),
]


def _search_text(conversation: Conversation) -> str:
    chunks = []
    for entry in conversation.entries:
        if entry.text_content:
            chunks.append(entry.text_content)
        for tc in entry.tool_calls:
            chunks.append(tc.tool)
            if tc.input:
                chunks.append(json.dumps(tc.input, default=str))
            if tc.output:
                chunks.append(tc.output[:TOOL_OUTPUT_LIMIT])
    return "\n".join(chunks).lower()


def _ranked(text: str, rules) -> list[str]:
    counts = []
    for pattern, tag in rules:
        n = sum(1 for _ in pattern.finditer(text))
        if n:
            counts.append((n, tag))
    # stable: equal counts keep rule order
    counts.sort(key=lambda item: item[0], reverse=True)
    return [tag for _, tag in counts]


def extract_tags(conversation: Conversation) -> list[str]:
    """Return hierarchical tags describing a conversation."""
    tags = []
    if conversation.project_name:
        tags.append(f"project/{conversation.project_name.lower()}")

    text = _search_text(conversation)
    if not text:
        return tags

    for tag in (
        _ranked(text, TOPIC_RULES)
        + _ranked(text, TECH_RULES)
        + _ranked(text, ACTIVITY_RULES)
    ):
        if len(tags) >= MAX_TAGS:
            break
        tags.append(tag)

    title = conversation.session.title or conversation.session.slug
    for pattern, tag in DOMAIN_RULES:
        if len(tags) >= MAX_TAGS:
            break
        if tag in tags:
            continue
        if pattern.search(title):
            tags.append(tag)
        elif sum(1 for _ in pattern.finditer(text)) >= DOMAIN_TEXT_THRESHOLD:
            tags.append(tag)

    return tags

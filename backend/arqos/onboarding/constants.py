"""Static lookup tables for the setup wizard.

Office sizes, team roles, services, fixed-cost fields, market positioning
and the six wizard steps, plus small helpers to look entries up and derive
defaults.
"""

# ── Wizard steps ────────────────────────────────────────────

WIZARD_STEPS: list[dict] = [
    {"id": 1, "key": "size", "name": "Tamanho", "description": "Tamanho do escritório"},
    {"id": 2, "key": "name", "name": "Nome", "description": "Nome do escritório"},
    {"id": 3, "key": "team", "name": "Equipe", "description": "Membros da equipe"},
    {"id": 4, "key": "costs", "name": "Custos", "description": "Custos fixos mensais"},
    {"id": 5, "key": "services", "name": "Serviços", "description": "Serviços oferecidos"},
    {"id": 6, "key": "margin", "name": "Margem", "description": "Margem de lucro"},
]

TOTAL_STEPS = len(WIZARD_STEPS)

DEFAULT_MARGIN = 30
MIN_MARGIN = 10
MAX_MARGIN = 100

# Hours assumed for the hourly-cost preview when the team is still empty
DEFAULT_MONTHLY_HOURS = 160
MAX_MONTHLY_HOURS = 744  # 31 days × 24h


# ── Office sizes ────────────────────────────────────────────

OFFICE_SIZES: list[dict] = [
    {
        "id": "solo",
        "name": "Solo",
        "description": "Você trabalha sozinho(a)",
        "team_range": "1 pessoa",
    },
    {
        "id": "small",
        "name": "Pequeno",
        "description": "Equipe enxuta e ágil",
        "team_range": "2-5 pessoas",
    },
    {
        "id": "medium",
        "name": "Médio",
        "description": "Equipe estruturada",
        "team_range": "6-15 pessoas",
    },
    {
        "id": "large",
        "name": "Grande",
        "description": "Equipe extensa com departamentos",
        "team_range": "16+ pessoas",
    },
]

_RECOMMENDED_TEAM_SIZE: dict[str, tuple[int, int]] = {
    "solo": (1, 1),
    "small": (2, 5),
    "medium": (6, 15),
    "large": (16, 100),
}


def get_office_size_by_id(size_id: str) -> dict | None:
    return next((s for s in OFFICE_SIZES if s["id"] == size_id), None)


def get_recommended_team_size(office_size: str | None) -> tuple[int, int]:
    """(min, max) team headcount suggested for an office size."""
    return _RECOMMENDED_TEAM_SIZE.get(office_size or "", (1, 100))


# ── Team roles ──────────────────────────────────────────────

TEAM_ROLES: list[dict] = [
    {"id": "owner", "name": "Proprietário(a)", "default_salary": 10000, "default_hours": 160},
    {"id": "coordinator", "name": "Coordenador(a)", "default_salary": 8000, "default_hours": 160},
    {"id": "architect", "name": "Arquiteto(a)", "default_salary": 5000, "default_hours": 160},
    {"id": "intern", "name": "Estagiário(a)", "default_salary": 1500, "default_hours": 120},
    {"id": "admin", "name": "Administrativo(a)", "default_salary": 3000, "default_hours": 160},
]

FALLBACK_SALARY = 3000
FALLBACK_HOURS = 160


def get_role_by_id(role_id: str) -> dict | None:
    return next((r for r in TEAM_ROLES if r["id"] == role_id), None)


def get_role_name(role_id: str) -> str:
    role = get_role_by_id(role_id)
    return role["name"] if role else role_id


def get_role_defaults(role_id: str) -> dict:
    """Default salary and monthly hours used to prefill a new team member."""
    role = get_role_by_id(role_id)
    if not role:
        return {"salary": FALLBACK_SALARY, "hours": FALLBACK_HOURS}
    return {"salary": role["default_salary"], "hours": role["default_hours"]}


# ── Services ────────────────────────────────────────────────

SERVICES: list[dict] = [
    {
        "id": "decorexpress",
        "name": "DecorExpress",
        "description": "Consultoria de decoração expressa para ambientes residenciais",
    },
    {
        "id": "projetexpress",
        "name": "ProjetExpress",
        "description": "Projeto arquitetônico completo com memorial descritivo",
    },
    {
        "id": "producao",
        "name": "Produção",
        "description": "Acompanhamento de obra e produção de interiores",
    },
    {
        "id": "consultoria",
        "name": "Consultoria",
        "description": "Consultoria pontual para projetos específicos",
    },
]


def get_service_by_id(service_id: str) -> dict | None:
    return next((s for s in SERVICES if s["id"] == service_id), None)


def get_service_name(service_id: str) -> str:
    service = get_service_by_id(service_id)
    return service["name"] if service else service_id


def get_service_names(service_ids: list[str]) -> list[str]:
    return [get_service_name(s) for s in service_ids]


# ── Fixed monthly costs ─────────────────────────────────────

COST_FIELDS: list[dict] = [
    {"key": "rent", "label": "Aluguel", "placeholder": "Ex: 3000"},
    {"key": "utilities", "label": "Contas (luz, água, gás)", "placeholder": "Ex: 500"},
    {"key": "software", "label": "Softwares e Assinaturas", "placeholder": "Ex: 800"},
    {"key": "marketing", "label": "Marketing e Publicidade", "placeholder": "Ex: 1000"},
    {"key": "accountant", "label": "Contador", "placeholder": "Ex: 500"},
    {"key": "internet", "label": "Internet e Telefone", "placeholder": "Ex: 200"},
    {"key": "others", "label": "Outros Custos Fixos", "placeholder": "Ex: 300"},
]

COST_KEYS: tuple[str, ...] = tuple(f["key"] for f in COST_FIELDS)

DEFAULT_COSTS: dict[str, float] = {key: 0 for key in COST_KEYS}


def calculate_total_costs(costs: dict) -> float:
    """Sum of all fixed monthly costs; missing or null fields count as zero."""
    return sum((costs.get(key) or 0) for key in COST_KEYS)


def format_currency(value: float) -> str:
    """Format a BRL amount without cents, e.g. ``R$ 3.000``."""
    # pt-BR groups thousands with "."
    return "R$ " + f"{value:,.0f}".replace(",", ".")


# ── Market positioning ──────────────────────────────────────

POSITIONING_OPTIONS: list[dict] = [
    {
        "id": "iniciante",
        "name": "Iniciante",
        "multiplier": 1.0,
        "description": "Apenas cobre custos + margem",
    },
    {
        "id": "estruturado",
        "name": "Estruturado",
        "multiplier": 1.5,
        "description": "Escritório com processos definidos",
    },
    {
        "id": "bem_posicionado",
        "name": "Bem Posicionado",
        "multiplier": 2.0,
        "description": "Reconhecimento no mercado",
        "recommended": True,
    },
    {
        "id": "premium",
        "name": "Premium",
        "multiplier": 2.5,
        "description": "Marca estabelecida",
    },
    {
        "id": "ultra_premium",
        "name": "Ultra Premium",
        "multiplier": 3.0,
        "description": "Alto luxo, alta demanda",
    },
]

DEFAULT_POSITIONING = "bem_posicionado"


def get_positioning_by_id(positioning_id: str) -> dict | None:
    return next((p for p in POSITIONING_OPTIONS if p["id"] == positioning_id), None)


def get_positioning_multiplier(positioning_id: str) -> float:
    option = get_positioning_by_id(positioning_id)
    return option["multiplier"] if option else 2.0

"""
Roadmap generator for Sprintly.

Turns a free-text objective into a goal with a ready-made step list. The
prompt is matched against keyword templates (programming, YouTube channel,
public exam); anything else gets a generic eight-step plan named after the
prompt itself. Everything is local: no model or network call is involved.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sprintly.config_manager import config
from sprintly.models import Goal, Urgency

GENERIC_CATEGORY = "IA Gerada"
ROADMAP_TAGS = ("IA", "Roadmap")
MAX_GENERIC_NAME = 50


@dataclass(frozen=True)
class RoadmapTemplate:
    name: str
    description: str
    category: str
    steps: Tuple[str, ...]
    keywords: Tuple[str, ...] = ()


# Checked in order; the first template with a keyword in the prompt wins.
TEMPLATES: Tuple[RoadmapTemplate, ...] = (
    RoadmapTemplate(
        name="Aprender Python",
        description="Dominar programação Python do básico ao avançado",
        category="Programação",
        steps=(
            "Sintaxe básica e variáveis",
            "Estruturas de controle (if, for, while)",
            "Funções e módulos",
            "Programação orientada a objetos",
            "Manipulação de arquivos",
            "Bibliotecas populares (requests, pandas)",
            "Frameworks web (Flask/Django)",
            "Projeto prático",
        ),
        keywords=("python", "programação"),
    ),
    RoadmapTemplate(
        name="Criar canal no YouTube",
        description="Desenvolver um canal de sucesso no YouTube",
        category="Criação de Conteúdo",
        steps=(
            "Definir nicho e público-alvo",
            "Criar identidade visual",
            "Configurar canal e otimizar SEO",
            "Planejar primeiros 10 vídeos",
            "Aprender edição básica",
            "Criar cronograma de publicação",
            "Estratégias de engajamento",
            "Monetização e parcerias",
        ),
        keywords=("youtube", "canal", "vídeo"),
    ),
    RoadmapTemplate(
        name="Estudar para concurso público",
        description="Preparação completa para concurso público",
        category="Estudos",
        steps=(
            "Análise do edital",
            "Cronograma de estudos",
            "Português e redação",
            "Matemática e raciocínio lógico",
            "Conhecimentos específicos",
            "Legislação aplicável",
            "Simulados e provas anteriores",
            "Revisão final",
        ),
        keywords=("concurso", "público"),
    ),
)

GENERIC_STEPS: Tuple[str, ...] = (
    "Pesquisa e planejamento inicial",
    "Definir objetivos específicos",
    "Criar cronograma detalhado",
    "Executar primeira fase",
    "Avaliar progresso e ajustar",
    "Implementar melhorias",
    "Finalizar e documentar",
    "Celebrar conquista",
)


def match_template(prompt: str) -> Optional[RoadmapTemplate]:
    lowered = prompt.lower()
    for template in TEMPLATES:
        if any(keyword in lowered for keyword in template.keywords):
            return template
    return None


def generic_template(prompt: str) -> RoadmapTemplate:
    """Plan named after the prompt, truncated to 50 characters plus an ellipsis."""
    name = prompt if len(prompt) <= MAX_GENERIC_NAME else prompt[:MAX_GENERIC_NAME] + "..."
    return RoadmapTemplate(
        name=name,
        description=f"Roadmap gerado por IA para: {prompt}",
        category=GENERIC_CATEGORY,
        steps=GENERIC_STEPS,
    )


def build_roadmap_goal(prompt: str, goal_id: str, now: Optional[datetime] = None) -> Goal:
    """Build the goal for a prompt. Deadline is ROADMAP_DEADLINE_DAYS from now."""
    now = now or datetime.now()
    template = match_template(prompt) or generic_template(prompt)
    steps: List[str] = list(template.steps)
    return Goal(
        id=goal_id,
        name=template.name,
        description=template.description,
        category=template.category,
        urgency=Urgency.MEDIUM,
        deadline=(now + timedelta(days=config.ROADMAP_DEADLINE_DAYS)).date().isoformat(),
        steps=steps,
        progress=0,
        created_at=now.isoformat(),
        tags=list(ROADMAP_TAGS),
    )

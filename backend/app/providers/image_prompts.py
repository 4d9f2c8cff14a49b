"""
Subject-specific instructions for educational diagram generation.
"""

LABELLING_RULES = """CRITICAL REQUIREMENTS:
- Use LARGE, BOLD, BLACK text for all labels (minimum 16px)
- Place labels OUTSIDE the diagram with clear arrows pointing to structures
- Use sequential labels: A, B, C, D, E, F, G, H, I, J (in that order)
- Labels must not overlap
- White background with high contrast
- Include a title at the top of the diagram"""

SUBJECT_GUIDANCE = {
    "biology": (
        "a high-quality, educational biology diagram",
        "- Professional scientific illustration style\n"
        "- All biological terminology must be spelled correctly\n"
        "- Every major structure has a clear, readable label",
    ),
    "chemistry": (
        "a clear, educational chemistry diagram",
        "- Show molecular structures, bonds and reactions clearly\n"
        "- Include proper chemical symbols and formulas",
    ),
    "physics": (
        "a clear, educational physics diagram",
        "- Show measurements, forces and physical principles clearly\n"
        "- Include proper units and symbols",
    ),
    "mathematics": (
        "a clear, educational mathematics diagram",
        "- Show geometric shapes and coordinate systems clearly\n"
        "- Include proper mathematical notation",
    ),
    "english language": (
        "a clear, structured diagram",
        "- Use connecting lines between labelled parts\n"
        "- Show language structures and relationships",
    ),
    "english literature": (
        "a clear, structured diagram",
        "- Use connecting lines between labelled parts\n"
        "- Show literary relationships and themes",
    ),
    "combined science": (
        "a clear, educational combined science diagram",
        "- Professional scientific illustration style\n"
        "- Include proper scientific terminology",
    ),
}
SUBJECT_GUIDANCE["maths"] = SUBJECT_GUIDANCE["mathematics"]

DEFAULT_GUIDANCE = (
    "a clear educational diagram",
    "- Professional educational illustration style",
)


def build_image_prompt(description: str, subject: str) -> str:
    kind, extra_rules = SUBJECT_GUIDANCE.get(subject.strip().lower(), DEFAULT_GUIDANCE)
    return f'Create {kind} of "{description}".\n{LABELLING_RULES}\n{extra_rules}\n'

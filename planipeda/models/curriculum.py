from sqlalchemy import Column, Integer, String, Text, ForeignKey
from planipeda.database import Base

# --- Course hierarchy: Niveau > Option > Unite > Chapitre > Objectif ---

class Niveau(Base):
    __tablename__ = "niveaux"

    id = Column(Integer, primary_key=True, index=True)
    nom_niveau = Column(String, nullable=False) # Tronc commun, 1ère Bac, ...

class Option(Base):
    __tablename__ = "options"

    id = Column(Integer, primary_key=True, index=True)
    nom_option = Column(String, nullable=False) # Sciences expérimentales, ...
    niveau_id = Column(Integer, ForeignKey("niveaux.id"), nullable=False, index=True)

class Unite(Base):
    __tablename__ = "unites"

    id = Column(Integer, primary_key=True, index=True)
    titre_unite = Column(String, nullable=False)
    option_id = Column(Integer, ForeignKey("options.id"), nullable=False, index=True)

class Chapitre(Base):
    __tablename__ = "chapitres"

    id = Column(Integer, primary_key=True, index=True)
    titre_chapitre = Column(String, nullable=False)
    unite_id = Column(Integer, ForeignKey("unites.id"), nullable=False, index=True)

class Objectif(Base):
    __tablename__ = "objectifs"

    id = Column(Integer, primary_key=True, index=True)
    chapitre_id = Column(Integer, ForeignKey("chapitres.id"), nullable=False, index=True)
    objectif_type = Column(String, nullable=True) # Savoir, Savoir-faire, ...
    description_objectif = Column(Text, nullable=False)

# --- Reference data used by activities and evaluations ---

class CompetenceType:
    GENERALE = "générale"
    SPECIFIQUE = "spécifique"

    ALL = (GENERALE, SPECIFIQUE)

class Competence(Base):
    __tablename__ = "competences"

    id = Column(Integer, primary_key=True, index=True)
    titre_competence = Column(String, nullable=False)
    description_competence = Column(Text, nullable=True)
    type_competence = Column(String, nullable=False, default=CompetenceType.SPECIFIQUE)
    # Only specific competences belong to a unit
    unite_id = Column(Integer, ForeignKey("unites.id", ondelete="CASCADE"), nullable=True, index=True)

class Connaissance(Base):
    __tablename__ = "connaissances"

    id = Column(Integer, primary_key=True, index=True)
    titre_connaissance = Column(String, nullable=False)
    description_connaissance = Column(Text, nullable=True)
    chapitre_id = Column(Integer, ForeignKey("chapitres.id", ondelete="SET NULL"), nullable=True, index=True)

class CapaciteHabilete(Base):
    __tablename__ = "capacites_habiletes"

    id = Column(Integer, primary_key=True, index=True)
    titre_capacite_habilete = Column(String, nullable=False)

class Modalite(Base):
    __tablename__ = "modalites"

    id = Column(Integer, primary_key=True, index=True)
    nom_modalite = Column(String, nullable=False) # Écrit, Oral, Projet, ...

"""
web/i18n.py -- French/English strings for the server-rendered pages.

Lookup falls back to French, then to the key itself, so a missing translation
shows up as a visible key rather than an exception.

The language comes from ?lang= (which also sets the "lang" cookie in
web/routes.py) or from the cookie; French is the default.
"""

from fastapi import Request

DEFAULT_LANGUAGE = "fr"
LANGUAGES = ("fr", "en")
LANG_COOKIE = "lang"

TRANSLATIONS: dict[str, dict[str, str]] = {
    "fr": {
        # Navbar
        "home": "Accueil",
        "research": "Recherche",
        "team": "Équipe",
        "publications": "Publications",
        "contact": "Contact",
        "login": "Connexion",
        "logout": "Déconnexion",
        "register": "Inscription",
        "adminSpace": "Administration",
        "researcherSpace": "Espace chercheur",
        # Lab info
        "labName": "LRM2E",
        "labFullName": "Laboratoire de Recherche en Matériaux, Électrochimie et Environnement",
        # Hero
        "heroTitle": "Innovation en Électrochimie",
        "heroSubtitle": "Recherche de pointe en matériaux, électrochimie et applications environnementales.",
        "ourResearch": "Nos Recherches",
        "contactUs": "Contactez-nous",
        # Research
        "researchAreas": "Domaines de Recherche",
        "advancedMaterials": "Matériaux Avancés",
        "advancedMaterialsDesc": "Développement et caractérisation de nouveaux matériaux pour applications électrochimiques.",
        "electrochemicalCatalysis": "Catalyse Électrochimique",
        "electrochemicalCatalysisDesc": "Étude des catalyseurs pour les réactions électrochimiques et applications énergétiques.",
        "environmentalTech": "Technologies Environnementales",
        "environmentalTechDesc": "Solutions électrochimiques pour le traitement des eaux et la surveillance environnementale.",
        # Team
        "ourTeam": "Notre Équipe",
        "directorRole": "Directrice du Laboratoire",
        "piRole": "Chercheur Principal",
        "seniorResearcherRole": "Chercheuse Senior",
        "projectLeaderRole": "Chef de Projet",
        # Publications
        "recentPublications": "Publications Récentes",
        "publication1Title": "Nouveaux catalyseurs à base de Pd-Ni pour l'électro-oxydation du méthanol",
        "publication2Title": "Capteurs électrochimiques pour la détection des métaux lourds dans l'eau",
        # Gallery
        "ourLaboratory": "Notre Laboratoire",
        "laboratoryDescription": "Un aperçu de nos installations et équipements de recherche de pointe.",
        "galleryLab": "Laboratoire LRM2E",
        "galleryEquipment": "Équipement de recherche",
        # Contact
        "contactTitle": "Contactez-nous",
        "name": "Nom",
        "email": "Email",
        "subject": "Sujet",
        "message": "Message",
        "send": "Envoyer",
        "messageSent": "Votre message a été envoyé avec succès.",
        "contactInvalid": "Veuillez remplir tous les champs avec une adresse email valide.",
        # Auth
        "authTitle": "Espace membres",
        "authSubtitle": "Connectez-vous ou créez un compte chercheur.",
        "username": "Nom d'utilisateur",
        "password": "Mot de passe",
        "fullName": "Nom complet",
        "department": "Département",
        "position": "Poste",
        "errorBadCredentials": "Nom d'utilisateur ou mot de passe invalide.",
        "errorDuplicateUsername": "Ce nom d'utilisateur existe déjà.",
        "errorInvalidRegistration": "Nom d'utilisateur (3 caractères min.), email valide et mot de passe (6 caractères min.) requis.",
        # Admin
        "adminTitle": "Administration",
        "users": "Utilisateurs",
        "role": "Rôle",
        "roleAdmin": "Administrateur",
        "roleResearcher": "Chercheur",
        "roleUser": "Utilisateur",
        "contactMessages": "Messages de contact",
        "noMessages": "Aucun message.",
        "delete": "Supprimer",
        "date": "Date",
        # Researcher
        "researcherTitle": "Tableau de bord chercheur",
        "welcome": "Bienvenue",
        "myPublications": "Mes publications",
        "myExperiments": "Mes expériences",
        "equipment": "Équipements",
        "nothingYet": "Rien pour le moment.",
        # Misc
        "loading": "Chargement...",
        "allRightsReserved": "Tous droits réservés.",
    },
    "en": {
        "home": "Home",
        "research": "Research",
        "team": "Team",
        "publications": "Publications",
        "contact": "Contact",
        "login": "Log in",
        "logout": "Log out",
        "register": "Sign up",
        "adminSpace": "Administration",
        "researcherSpace": "Researcher area",
        "labName": "LRM2E",
        "labFullName": "Research Laboratory for Materials, Electrochemistry and Environment",
        "heroTitle": "Innovation in Electrochemistry",
        "heroSubtitle": "Cutting-edge research in materials, electrochemistry and environmental applications.",
        "ourResearch": "Our Research",
        "contactUs": "Contact us",
        "researchAreas": "Research Areas",
        "advancedMaterials": "Advanced Materials",
        "advancedMaterialsDesc": "Development and characterization of new materials for electrochemical applications.",
        "electrochemicalCatalysis": "Electrochemical Catalysis",
        "electrochemicalCatalysisDesc": "Study of catalysts for electrochemical reactions and energy applications.",
        "environmentalTech": "Environmental Technologies",
        "environmentalTechDesc": "Electrochemical solutions for water treatment and environmental monitoring.",
        "ourTeam": "Our Team",
        "directorRole": "Laboratory Director",
        "piRole": "Principal Investigator",
        "seniorResearcherRole": "Senior Researcher",
        "projectLeaderRole": "Project Leader",
        "recentPublications": "Recent Publications",
        "publication1Title": "New Pd-Ni based catalysts for methanol electro-oxidation",
        "publication2Title": "Electrochemical sensors for heavy metal detection in water",
        "ourLaboratory": "Our Laboratory",
        "laboratoryDescription": "A glimpse of our state-of-the-art research facilities and equipment.",
        "galleryLab": "LRM2E Lab",
        "galleryEquipment": "Research Equipment",
        "contactTitle": "Contact us",
        "name": "Name",
        "email": "Email",
        "subject": "Subject",
        "message": "Message",
        "send": "Send",
        "messageSent": "Your message has been sent successfully.",
        "contactInvalid": "Please fill in every field with a valid email address.",
        "authTitle": "Members area",
        "authSubtitle": "Log in or create a researcher account.",
        "username": "Username",
        "password": "Password",
        "fullName": "Full name",
        "department": "Department",
        "position": "Position",
        "errorBadCredentials": "Invalid username or password.",
        "errorDuplicateUsername": "This username already exists.",
        "errorInvalidRegistration": "Username (3+ characters), a valid email and a password (6+ characters) are required.",
        "adminTitle": "Administration",
        "users": "Users",
        "role": "Role",
        "roleAdmin": "Administrator",
        "roleResearcher": "Researcher",
        "roleUser": "User",
        "contactMessages": "Contact messages",
        "noMessages": "No messages.",
        "delete": "Delete",
        "date": "Date",
        "researcherTitle": "Researcher dashboard",
        "welcome": "Welcome",
        "myPublications": "My publications",
        "myExperiments": "My experiments",
        "equipment": "Equipment",
        "nothingYet": "Nothing yet.",
        "loading": "Loading...",
        "allRightsReserved": "All rights reserved.",
    },
}


def translate(key: str, lang: str) -> str:
    table = TRANSLATIONS.get(lang, TRANSLATIONS[DEFAULT_LANGUAGE])
    return table.get(key) or TRANSLATIONS[DEFAULT_LANGUAGE].get(key) or key


def get_language(request: Request) -> str:
    """Return the request's language: ?lang= first, then the cookie, then French."""
    for candidate in (request.query_params.get("lang"), request.cookies.get(LANG_COOKIE)):
        if candidate in LANGUAGES:
            return candidate
    return DEFAULT_LANGUAGE

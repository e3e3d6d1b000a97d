"""UI labels in English and French. The language is saved under gs.lang."""

K_LANG = "gs.lang"
LANGUAGES = ("en", "fr")

EN = {
    "workers": "Workers",
    "workers_desc": "Manage workers, set salaries, record payments, and see their balances. "
                    "Differences from Cashier Closing update here.",
    "no_workers": "No workers yet.",
    "date_hired": "Date Hired",
    "salary": "Salary",
    "pay_amount": "Pay Amount",
    "last_payment": "Last payment",
    "adjust_balance": "Adjust Balance",
    "add": "Add",
    "deduct": "Deduct",
    "delete_worker": "Delete Worker",
    "add_worker": "Add Worker",
    "total_monthly_salaries": "Total monthly salaries",
    "payments_history": "Payments History",
    "recent_worker_payments": "Recent worker payments",
    "no_payments": "No payments yet.",
    "menu": "Menu",
    "home": "Home",
    "tanks": "Tanks",
    "store": "Store",
    "credits": "Credits",
    "cheques": "Cheques",
    "reports": "Reports",
    "totals": "Total So Far",
    "settings": "Settings",
    "taxes_zakat": "Taxes & Zakat",
    "workers_nav": "Workers",
    "language": "Language",
    "logout": "Logout",
    "save_day": "Save Day",
    "dark_mode": "Dark mode",
}

FR = {
    "workers": "Travailleurs",
    "workers_desc": "Gérer les travailleurs, définir les salaires, enregistrer les paiements et voir leurs soldes. "
                    "Les différences de clôture de caisse se mettent ici.",
    "no_workers": "Aucun travailleur pour l'instant.",
    "date_hired": "Date d'embauche",
    "salary": "Salaire",
    "pay_amount": "Montant du paiement",
    "last_payment": "Dernier paiement",
    "adjust_balance": "Ajuster le solde",
    "add": "Ajouter",
    "deduct": "Déduire",
    "delete_worker": "Supprimer le travailleur",
    "add_worker": "Ajouter un travailleur",
    "total_monthly_salaries": "Salaires mensuels totaux",
    "payments_history": "Historique des paiements",
    "recent_worker_payments": "Paiements récents",
    "no_payments": "Aucun paiement pour l'instant.",
    "menu": "Menu",
    "home": "Accueil",
    "tanks": "Cuves",
    "store": "Magasin",
    "credits": "Crédits",
    "cheques": "Chèques",
    "reports": "Rapports",
    "totals": "Total à ce jour",
    "settings": "Paramètres",
    "taxes_zakat": "Taxes & Zakat",
    "workers_nav": "Travailleurs",
    "language": "Langue",
    "logout": "Déconnexion",
    "save_day": "Enregistrer la journée",
    "dark_mode": "Mode sombre",
}

DICTS = {"en": EN, "fr": FR}


def translate(lang: str, key: str, fallback: str = None) -> str:
    d = DICTS.get(lang) or EN
    if key in d:
        return d[key]
    if key in EN:
        return EN[key]
    return fallback if fallback is not None else key


def translator(lang: str):
    """Bind a language: t = translator("fr"); t("salary")."""
    return lambda key, fallback=None: translate(lang, key, fallback)

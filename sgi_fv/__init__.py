"""SGI FV (Sistema de Gestão Integrada - Formando Valores) API."""

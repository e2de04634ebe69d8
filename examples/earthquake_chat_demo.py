"""Minimal demonstration of the earthquake assistant session."""

from quake_assistant import ask

if __name__ == "__main__":
    question = "Deprem sırasında evde neler yapmalıyım?"
    result = ask(question, timeout=120)
    print("Kullanıcı:", question)
    print("Asistan:", result["reply"])
    if result["error"]:
        print("Hata:", result["error"])

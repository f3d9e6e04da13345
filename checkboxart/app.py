import customtkinter as ctk

from .gui import CheckboxArtApp


def main():
    ctk.set_appearance_mode("System")
    app = CheckboxArtApp()
    app.mainloop()


if __name__ == "__main__":
    main()
